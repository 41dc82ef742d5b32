"""
AWS Profile Manager

This module reads and writes the MFA-related settings of named profiles in
the AWS shared config file (mfa_serial, role_arn, source_profile and
duration_seconds). Every read goes back to the file, so a value written by
attach is visible to the next lookup.
"""

import configparser
import logging
from pathlib import Path
from typing import List, Optional

from ..exceptions import ConfigurationMissingError

__all__ = [
    'ConfigStore',
    'Profile',
]

logger = logging.getLogger(__name__)


class Profile:
    """MFA-related configuration of a named AWS profile."""
    def __init__(self, name: str, mfa_serial: Optional[str] = None,
                 role_arn: Optional[str] = None, source_profile: Optional[str] = None,
                 duration_seconds: Optional[int] = None):
        self.name = name
        self.mfa_serial = mfa_serial
        self.role_arn = role_arn
        self.source_profile = source_profile
        self.duration_seconds = duration_seconds

    @property
    def is_role(self) -> bool:
        """True when credentials are obtained by assuming a role."""
        return bool(self.role_arn)

    def __str__(self) -> str:
        """Return string representation of the profile."""
        details = []
        if self.mfa_serial:
            details.append(f"mfa: {self.mfa_serial}")
        else:
            details.append("no MFA device")
        if self.role_arn:
            details.append(f"role: {self.role_arn}")
            details.append(f"source: {self.source_profile or '?'}")

        return f"{self.name} [{', '.join(details)}]"


def _section_name(profile_name: str) -> str:
    return f"profile {profile_name}" if profile_name != "default" else "default"


class ConfigStore:
    """
    Key-value access to profile settings in the AWS config file.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            config_path: Path to the config file (defaults to ~/.aws/config;
                Settings carries an AWS_CONFIG_FILE override)
        """
        if config_path is None:
            config_path = Path.home() / ".aws" / "config"
        self.config_path = Path(config_path)

    def _load(self) -> configparser.ConfigParser:
        # Duplicate sections and keys are tolerated, later values win
        config = configparser.ConfigParser(interpolation=None, strict=False)
        if self.config_path.exists():
            try:
                config.read(self.config_path)
            except configparser.Error as e:
                raise ConfigurationMissingError(f"Cannot parse AWS config file {self.config_path}: {e}")
        else:
            logger.debug("Config file not found: %s", self.config_path)
        return config

    def get_value(self, profile_name: str, key: str) -> Optional[str]:
        """
        Read one setting of a profile.

        Args:
            profile_name: Profile name
            key: Setting name

        Returns:
            The stripped value, or None when missing or empty
        """
        config = self._load()
        value = config.get(_section_name(profile_name), key, fallback=None)
        if value is None:
            return None
        return value.strip() or None

    def set_value(self, profile_name: str, key: str, value: str) -> None:
        """
        Write one setting of a profile, creating the section and file if needed.

        Args:
            profile_name: Profile name
            key: Setting name
            value: New value
        """
        config = self._load()
        section = _section_name(profile_name)
        if not config.has_section(section):
            config.add_section(section)
        config.set(section, key, value)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            config.write(f)
        logger.debug("Wrote %s for profile %s to %s", key, profile_name, self.config_path)

    def get_profile(self, profile_name: str) -> Profile:
        """
        Load the MFA-related settings of a profile.

        A profile missing from the file yields a Profile with no settings.

        Args:
            profile_name: Profile name

        Returns:
            Profile instance
        """
        duration = self.get_value(profile_name, "duration_seconds")
        if duration is not None:
            try:
                duration = int(duration)
            except ValueError:
                raise ConfigurationMissingError(
                    f"Profile '{profile_name}' has an invalid duration_seconds: {duration!r}"
                )

        return Profile(
            name=profile_name,
            mfa_serial=self.get_value(profile_name, "mfa_serial"),
            role_arn=self.get_value(profile_name, "role_arn"),
            source_profile=self.get_value(profile_name, "source_profile"),
            duration_seconds=duration,
        )

    def list_profiles(self) -> List[Profile]:
        """
        List all profiles defined in the config file.

        Returns:
            List of Profile objects in file order
        """
        config = self._load()
        names = []
        for section in config.sections():
            if section == "default":
                names.append("default")
            elif section.startswith("profile "):
                names.append(section[8:])  # Remove "profile " prefix

        return [self.get_profile(name) for name in names]
