"""
MFA session resolution and status.
"""

from .credentials import (
    MfaDevice,
    Session,
    StsCredentialService,
    format_timestamp,
    is_mfa_code,
    parse_timestamp,
    validate_mfa_code,
)
from .manager import SessionManager
from .status import SessionCheck, SessionState, check_active_session

__all__ = [
    'MfaDevice',
    'Session',
    'SessionCheck',
    'SessionManager',
    'SessionState',
    'StsCredentialService',
    'check_active_session',
    'format_timestamp',
    'is_mfa_code',
    'parse_timestamp',
    'validate_mfa_code',
]
