"""
Session status check.

Inspects an environment mapping for the session exported by a previous
`enter` or `run` and reports whether it is still valid. No external calls.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Mapping, Optional

from ..config import (
    ENV_ACCESS_KEY_ID,
    ENV_SECRET_ACCESS_KEY,
    ENV_SESSION_EXPIRY,
    ENV_SESSION_PROFILE,
    ENV_SESSION_TOKEN,
)
from .credentials import Session, parse_timestamp

__all__ = [
    'SessionCheck',
    'SessionState',
    'check_active_session',
]


class SessionState(Enum):
    """Result of a status check, valued by the CLI exit code."""
    ACTIVE = 0
    EXPIRED = 10
    NO_SESSION = 20

    @property
    def exit_code(self) -> int:
        return self.value


class SessionCheck:
    """Outcome of check_active_session."""
    def __init__(self, state: SessionState, session: Optional[Session] = None,
                 checked_at: Optional[datetime] = None):
        self.state = state
        self.session = session
        self.checked_at = checked_at

    @property
    def remaining(self) -> Optional[timedelta]:
        """Time left before expiry, None without a session."""
        if self.session is None or self.checked_at is None:
            return None
        return max(self.session.expiration - self.checked_at, timedelta(0))


def check_active_session(env: Mapping[str, str], now: Optional[datetime] = None) -> SessionCheck:
    """
    Report the state of the session recorded in an environment.

    A missing or unparsable expiry counts as no session.

    Args:
        env: Environment mapping, not modified
        now: Reference time (defaults to the current UTC time)

    Returns:
        SessionCheck with the state and, unless there is no session, the session
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    raw_expiry = env.get(ENV_SESSION_EXPIRY)
    if not raw_expiry:
        return SessionCheck(SessionState.NO_SESSION, checked_at=now)

    try:
        expiration = parse_timestamp(raw_expiry)
    except ValueError:
        return SessionCheck(SessionState.NO_SESSION, checked_at=now)

    session = Session(
        access_key_id=env.get(ENV_ACCESS_KEY_ID, ""),
        secret_access_key=env.get(ENV_SECRET_ACCESS_KEY, ""),
        session_token=env.get(ENV_SESSION_TOKEN, ""),
        expiration=expiration,
        profile=env.get(ENV_SESSION_PROFILE),
    )

    if now >= expiration:
        return SessionCheck(SessionState.EXPIRED, session=session, checked_at=now)
    return SessionCheck(SessionState.ACTIVE, session=session, checked_at=now)
