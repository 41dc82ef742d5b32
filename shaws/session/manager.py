"""
Session Manager

Decides between a plain session token and an assumed-role token for a
profile, calls the credential service once, and turns the response into a
Session. Also hosts the two configuration-side operations that share the
same collaborators: attaching an MFA device and listing a user's devices.
"""

import logging
import re
from typing import List, Optional

from ..config import ASSUME_ROLE_DURATION, DEFAULT_ROLE_SESSION_NAME, SESSION_TOKEN_DURATION
from ..exceptions import ConfigurationMissingError, CredentialServiceError, InvalidInputError
from ..profiles import ConfigStore
from .credentials import MfaDevice, Session, StsCredentialService, validate_mfa_code

__all__ = [
    'SessionManager',
]

logger = logging.getLogger(__name__)

# arn:aws:iam::ACCOUNT:user/PATH/USERNAME
USER_ARN_PATTERN = re.compile(r"^arn:[^:]+:iam::[0-9]*:user/(?:.*/)?(?P<name>[^/]+)$")


class SessionManager:
    """
    Resolves MFA-authenticated sessions for named profiles.
    """

    def __init__(self, store: Optional[ConfigStore] = None,
                 service: Optional[StsCredentialService] = None,
                 role_session_name: str = DEFAULT_ROLE_SESSION_NAME):
        """
        Initialize the session manager.

        Args:
            store: Configuration store holding profile settings
            service: Credential service issuing temporary credentials
            role_session_name: Session name used when assuming roles
        """
        self.store = store or ConfigStore()
        self.service = service or StsCredentialService()
        self.role_session_name = role_session_name

    def resolve_session(self, profile_name: str, mfa_code: str) -> Session:
        """
        Obtain temporary credentials for a profile using an MFA code.

        Args:
            profile_name: Profile to authenticate
            mfa_code: Current code from the MFA device

        Returns:
            The resolved Session

        Raises:
            InvalidInputError: If the MFA code is malformed
            ConfigurationMissingError: If mfa_serial, or source_profile for a role, is missing
            CredentialServiceError: If the service call fails or returns unusable data
        """
        validate_mfa_code(mfa_code)

        profile = self.store.get_profile(profile_name)
        if not profile.mfa_serial:
            raise ConfigurationMissingError(
                f"No MFA device attached to profile '{profile_name}'; "
                f"run 'shaws attach {profile_name} MFA_SERIAL' first"
            )

        if profile.is_role:
            if not profile.source_profile:
                raise ConfigurationMissingError(
                    f"Profile '{profile_name}' sets role_arn but no source_profile"
                )
            logger.info("Assuming role %s via profile %s", profile.role_arn, profile.source_profile)
            response = self.service.assume_role(
                profile_name=profile.source_profile,
                role_arn=profile.role_arn,
                session_name=self.role_session_name,
                serial_number=profile.mfa_serial,
                token_code=mfa_code,
                duration_seconds=profile.duration_seconds or ASSUME_ROLE_DURATION,
            )
        else:
            logger.info("Requesting session token for profile %s", profile_name)
            response = self.service.get_session_token(
                profile_name=profile_name,
                serial_number=profile.mfa_serial,
                token_code=mfa_code,
                duration_seconds=profile.duration_seconds or SESSION_TOKEN_DURATION,
            )

        session = Session.from_response(response, profile=profile_name)
        logger.debug("Resolved %r", session)
        return session

    def attach_device(self, profile_name: str, mfa_serial: str) -> None:
        """
        Record the MFA device serial for a profile.

        Args:
            profile_name: Profile to update
            mfa_serial: MFA device serial number or ARN
        """
        mfa_serial = (mfa_serial or "").strip()
        if not mfa_serial:
            raise InvalidInputError("MFA serial must not be empty")

        self.store.set_value(profile_name, "mfa_serial", mfa_serial)
        logger.info("Attached %s to profile %s", mfa_serial, profile_name)

    def list_devices(self, profile_name: str) -> List[MfaDevice]:
        """
        List the MFA devices of the IAM user behind a profile.

        Args:
            profile_name: Profile whose user is looked up

        Returns:
            List of MfaDevice objects
        """
        arn = self.service.get_caller_arn(profile_name)
        match = USER_ARN_PATTERN.match(arn)
        if not match:
            raise CredentialServiceError(
                f"Profile '{profile_name}' does not resolve to an IAM user ({arn})"
            )

        user_name = match.group("name")
        logger.debug("Listing MFA devices for user %s", user_name)
        return self.service.list_mfa_devices(profile_name, user_name)
