"""
Errors raised by shaws.

Every error carries the process exit code the CLI terminates with, so the
command-line layer can catch ShawsError once and exit accordingly.
"""

from typing import Optional


class ShawsError(Exception):
    """Base class for all shaws errors."""

    exit_code = 2

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(ShawsError):
    """Malformed MFA code or wrong argument shape."""


class ConfigurationMissingError(ShawsError):
    """The profile configuration lacks mfa_serial, role_arn or source_profile."""


class CredentialServiceError(ShawsError):
    """
    The token-issuing call failed or returned unusable data.

    Args:
        message: Human readable description
        code: Error code reported by the service, if any
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class MissingDependencyError(ShawsError):
    """A required external tool is not available."""

    exit_code = 1


class ShellLaunchError(ShawsError):
    """The host shell could not be started."""

    exit_code = 1
