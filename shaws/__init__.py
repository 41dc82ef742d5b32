"""
shaws - shells with short-lived MFA-authenticated AWS credentials.

Resolves a session token (or an assumed-role token) for a profile from an
MFA code and exports it into a child shell.
"""

__version__ = "0.1.0"
