"""
Runtime settings for shaws.

All settings come from environment variables; the Settings object is built
once at startup from a mapping so the rest of the code never reads
os.environ directly.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

# Variables exported into the child shell
ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"
ENV_SESSION_EXPIRY = "SHAWS_SESSION"
ENV_SESSION_PROFILE = "SHAWS_PROFILE"

# Legacy name still honoured by some SDKs; a stale value would shadow the new token
ENV_LEGACY_SECURITY_TOKEN = "AWS_SECURITY_TOKEN"

ENV_PROFILE = "AWS_PROFILE"
ENV_DEFAULT_PROFILE = "AWS_DEFAULT_PROFILE"
ENV_CONFIG_FILE = "AWS_CONFIG_FILE"
ENV_SHELL = "SHELL"
ENV_DEBUG = "SHAWS_DEBUG"
ENV_ROLE_SESSION_NAME = "SHAWS_ROLE_SESSION_NAME"

DEFAULT_PROFILE = "default"
DEFAULT_SHELL = "/bin/sh"
DEFAULT_ROLE_SESSION_NAME = "shaws"

# Service maximums: 36 hours for IAM user session tokens, 12 hours for roles
SESSION_TOKEN_DURATION = 129600
ASSUME_ROLE_DURATION = 43200


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Settings resolved from the process environment."""

    def __init__(self, profile: str = DEFAULT_PROFILE, shell: str = DEFAULT_SHELL,
                 config_file: Optional[Path] = None, debug: bool = False,
                 role_session_name: str = DEFAULT_ROLE_SESSION_NAME):
        self.profile = profile
        self.shell = shell
        self.config_file = config_file
        self.debug = debug
        self.role_session_name = role_session_name

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from an environment mapping.

        Args:
            env: Environment to read (defaults to os.environ)

        Returns:
            Settings instance
        """
        if env is None:
            env = os.environ

        profile = env.get(ENV_PROFILE) or env.get(ENV_DEFAULT_PROFILE) or DEFAULT_PROFILE
        config_file = env.get(ENV_CONFIG_FILE)

        return cls(
            profile=profile,
            shell=env.get(ENV_SHELL) or DEFAULT_SHELL,
            config_file=Path(config_file).expanduser() if config_file else None,
            debug=_is_truthy(env.get(ENV_DEBUG)),
            role_session_name=env.get(ENV_ROLE_SESSION_NAME) or DEFAULT_ROLE_SESSION_NAME,
        )
