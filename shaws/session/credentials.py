"""
Temporary credentials and the STS/IAM calls that issue them.

The Session value is the only thing the shell launcher needs; the
StsCredentialService wraps boto3 so every SDK failure surfaces as a
CredentialServiceError.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import CredentialServiceError, InvalidInputError

__all__ = [
    'MfaDevice',
    'Session',
    'StsCredentialService',
    'format_timestamp',
    'is_mfa_code',
    'parse_timestamp',
    'validate_mfa_code',
]

logger = logging.getLogger(__name__)

MFA_CODE_PATTERN = re.compile(r"[0-9]+")


def validate_mfa_code(code: str) -> str:
    """
    Check that an MFA code consists of digits only.

    Args:
        code: Code typed by the user

    Returns:
        The code unchanged

    Raises:
        InvalidInputError: If the code is empty or contains anything but digits
    """
    if not isinstance(code, str) or not MFA_CODE_PATTERN.fullmatch(code):
        raise InvalidInputError(f"Invalid MFA token code: {code!r} (digits only)")
    return code


def is_mfa_code(value: str) -> bool:
    return isinstance(value, str) and MFA_CODE_PATTERN.fullmatch(value) is not None


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC timestamp ending in Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are read as UTC.

    Raises:
        ValueError: If the value is not a timestamp
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"Timestamp out of range: {value!r}")


class Session:
    """A set of short-lived credentials."""
    def __init__(self, access_key_id: str, secret_access_key: str,
                 session_token: str, expiration: datetime,
                 profile: Optional[str] = None):
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token
        self.expiration = expiration
        self.profile = profile

    @classmethod
    def from_response(cls, response: Dict[str, Any], profile: Optional[str] = None) -> "Session":
        """
        Build a session from a get_session_token or assume_role response.

        Args:
            response: Parsed service response
            profile: Profile the session was requested for

        Returns:
            Session instance

        Raises:
            CredentialServiceError: If credential fields are missing or malformed
        """
        credentials = response.get("Credentials") if isinstance(response, dict) else None
        if not isinstance(credentials, dict):
            raise CredentialServiceError("Credential service response has no Credentials")

        fields = {}
        for key in ("AccessKeyId", "SecretAccessKey", "SessionToken"):
            value = credentials.get(key)
            if not isinstance(value, str) or not value:
                raise CredentialServiceError(f"Credential service response is missing {key}")
            fields[key] = value

        expiration = credentials.get("Expiration")
        if isinstance(expiration, str):
            try:
                expiration = parse_timestamp(expiration)
            except ValueError:
                raise CredentialServiceError(f"Unparsable expiration in response: {expiration!r}")
        elif isinstance(expiration, datetime):
            if expiration.tzinfo is None:
                expiration = expiration.replace(tzinfo=timezone.utc)
            expiration = expiration.astimezone(timezone.utc)
        else:
            raise CredentialServiceError("Credential service response is missing Expiration")

        return cls(
            access_key_id=fields["AccessKeyId"],
            secret_access_key=fields["SecretAccessKey"],
            session_token=fields["SessionToken"],
            expiration=expiration,
            profile=profile,
        )

    @property
    def expiration_timestamp(self) -> str:
        return format_timestamp(self.expiration)

    def __repr__(self) -> str:
        # Never include the secret or the token
        return (f"Session(access_key_id={self.access_key_id!r}, "
                f"expiration={self.expiration_timestamp!r}, profile={self.profile!r})")


class MfaDevice:
    """An MFA device registered to an IAM user."""
    def __init__(self, serial_number: str, user_name: str,
                 enable_date: Optional[datetime] = None):
        self.serial_number = serial_number
        self.user_name = user_name
        self.enable_date = enable_date

    def __str__(self) -> str:
        if self.enable_date:
            return f"{self.serial_number} (enabled {format_timestamp(self.enable_date)})"
        return self.serial_number


def _service_error(action: str, error: Exception) -> CredentialServiceError:
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = details.get("Code")
        message = details.get("Message") or str(error)
        return CredentialServiceError(f"{action} failed: {code}: {message}", code=code)
    return CredentialServiceError(f"{action} failed: {error}")


class StsCredentialService:
    """
    Credential Service backed by AWS STS and IAM through boto3.

    Each call opens a boto3 session for the named profile so the profile's
    own long-lived credentials sign the request.
    """

    def __init__(self, session_factory: Callable[..., Any] = boto3.Session):
        """
        Initialize the service.

        Args:
            session_factory: Callable taking profile_name and returning a boto3 session
        """
        self._session_factory = session_factory

    def _client(self, profile_name: str, service: str):
        try:
            return self._session_factory(profile_name=profile_name).client(service)
        except BotoCoreError as e:
            raise _service_error(f"Opening {service} client for profile '{profile_name}'", e)

    def get_session_token(self, profile_name: str, serial_number: str,
                          token_code: str, duration_seconds: int) -> Dict[str, Any]:
        """
        Exchange an MFA code for a session token under a profile's credentials.

        Args:
            profile_name: Profile whose credentials sign the request
            serial_number: MFA device serial
            token_code: MFA code
            duration_seconds: Requested lifetime

        Returns:
            The raw service response
        """
        logger.debug("Requesting session token for profile=%s, mfa_serial=%s, duration=%ss",
                     profile_name, serial_number, duration_seconds)
        sts = self._client(profile_name, "sts")
        try:
            return sts.get_session_token(
                DurationSeconds=duration_seconds,
                SerialNumber=serial_number,
                TokenCode=token_code,
            )
        except (ClientError, BotoCoreError) as e:
            raise _service_error("GetSessionToken", e)

    def assume_role(self, profile_name: str, role_arn: str, session_name: str,
                    serial_number: str, token_code: str,
                    duration_seconds: int) -> Dict[str, Any]:
        """
        Assume a role with MFA under a source profile's credentials.

        Args:
            profile_name: Source profile whose credentials sign the request
            role_arn: Role to assume
            session_name: Role session name
            serial_number: MFA device serial
            token_code: MFA code
            duration_seconds: Requested lifetime

        Returns:
            The raw service response
        """
        logger.debug("Assuming role %s from profile=%s, mfa_serial=%s, duration=%ss",
                     role_arn, profile_name, serial_number, duration_seconds)
        sts = self._client(profile_name, "sts")
        try:
            return sts.assume_role(
                RoleArn=role_arn,
                RoleSessionName=session_name,
                SerialNumber=serial_number,
                TokenCode=token_code,
                DurationSeconds=duration_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise _service_error("AssumeRole", e)

    def get_caller_arn(self, profile_name: str) -> str:
        """Return the ARN of the identity behind a profile."""
        sts = self._client(profile_name, "sts")
        try:
            identity = sts.get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise _service_error("GetCallerIdentity", e)

        arn = identity.get("Arn")
        if not arn:
            raise CredentialServiceError("GetCallerIdentity returned no Arn")
        return arn

    def list_mfa_devices(self, profile_name: str, user_name: str) -> List[MfaDevice]:
        """List the MFA devices registered to an IAM user."""
        iam = self._client(profile_name, "iam")
        devices = []
        try:
            paginator = iam.get_paginator("list_mfa_devices")
            for page in paginator.paginate(UserName=user_name):
                for device in page.get("MFADevices", []):
                    devices.append(MfaDevice(
                        serial_number=device["SerialNumber"],
                        user_name=device.get("UserName", user_name),
                        enable_date=device.get("EnableDate"),
                    ))
        except (ClientError, BotoCoreError) as e:
            raise _service_error("ListMFADevices", e)

        return devices
