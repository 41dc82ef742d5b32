"""
Shell Launcher

Starts the host shell as a child process whose environment carries a
resolved session, waits for it and hands back its exit code. Only this
module builds process environments; the current process environment is
never modified.
"""

import logging
import shutil
import signal
import subprocess
from typing import Dict, List, Mapping, Sequence

from ..config import (
    ENV_ACCESS_KEY_ID,
    ENV_LEGACY_SECURITY_TOKEN,
    ENV_SECRET_ACCESS_KEY,
    ENV_SESSION_EXPIRY,
    ENV_SESSION_PROFILE,
    ENV_SESSION_TOKEN,
)
from ..exceptions import MissingDependencyError, ShellLaunchError
from ..session import Session

__all__ = [
    'STDIN_MARKER',
    'build_session_environment',
    'interactive_command',
    'one_shot_command',
    'require_shell',
    'spawn',
]

logger = logging.getLogger(__name__)

# Passed instead of a command string to make the shell read commands from stdin
STDIN_MARKER = "-"


def build_session_environment(session: Session, base_env: Mapping[str, str]) -> Dict[str, str]:
    """
    Return a copy of an environment with the session exported into it.

    Args:
        session: Resolved session
        base_env: Environment to extend, not modified

    Returns:
        New environment mapping
    """
    env = dict(base_env)
    env.pop(ENV_LEGACY_SECURITY_TOKEN, None)
    env.pop(ENV_SESSION_PROFILE, None)

    env[ENV_ACCESS_KEY_ID] = session.access_key_id
    env[ENV_SECRET_ACCESS_KEY] = session.secret_access_key
    env[ENV_SESSION_TOKEN] = session.session_token
    env[ENV_SESSION_EXPIRY] = session.expiration_timestamp
    if session.profile:
        env[ENV_SESSION_PROFILE] = session.profile

    return env


def require_shell(shell: str) -> str:
    """
    Check that the host shell is available.

    Args:
        shell: Shell name or path

    Returns:
        Resolved path of the shell

    Raises:
        MissingDependencyError: If the shell cannot be found or is not executable
    """
    path = shutil.which(shell)
    if path is None:
        raise MissingDependencyError(f"Shell not found or not executable: {shell}")
    return path


def interactive_command(shell: str) -> List[str]:
    return [shell, "-i"]


def one_shot_command(shell: str, command: str, args: Sequence[str] = ()) -> List[str]:
    """
    Build the argument vector for a non-interactive shell run.

    Args:
        shell: Shell path
        command: Command string, or STDIN_MARKER to read commands from stdin
        args: Positional arguments for the shell

    Returns:
        Argument vector
    """
    if command == STDIN_MARKER:
        return [shell, "-s", "--", *args]
    return [shell, "-c", command, *args]


def spawn(argv: Sequence[str], env: Mapping[str, str]) -> int:
    """
    Run a child process to completion and return its exit code.

    SIGINT is ignored in this process from before the child starts until it
    exits so that Ctrl-C reaches only the child. A child killed by signal N
    yields 128 + N.

    Args:
        argv: Argument vector
        env: Complete child environment

    Returns:
        Exit code of the child

    Raises:
        ShellLaunchError: If the child cannot be started
    """
    logger.debug("Starting %s", argv[0])
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    # The child gets the disposition this process had before the ignore
    child_handler = signal.SIG_IGN if previous == signal.SIG_IGN else signal.SIG_DFL
    try:
        try:
            process = subprocess.Popen(
                list(argv),
                env=dict(env),
                preexec_fn=lambda: signal.signal(signal.SIGINT, child_handler),
            )
        except OSError as e:
            raise ShellLaunchError(f"Could not start {argv[0]}: {e}")
        returncode = process.wait()
    finally:
        signal.signal(signal.SIGINT, previous)

    logger.debug("%s exited with %s", argv[0], returncode)
    if returncode < 0:
        return 128 - returncode
    return returncode
