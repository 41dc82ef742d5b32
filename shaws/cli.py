"""
shaws command-line interface

Run a shell, or a single command, with temporary MFA-authenticated AWS
credentials exported into its environment.

    shaws                                      show the state of the current session
    shaws attach [PROFILE] MFA_SERIAL          record the MFA device of a profile
    shaws ls-devices [PROFILE]                 list the MFA devices of the profile's user
    shaws enter [PROFILE] TOKEN_CODE           start an interactive shell with a session
    shaws run [PROFILE] TOKEN_CODE (STRING | -) [ARGS...]
                                               run STRING (or stdin, with -) in a shell

PROFILE defaults to AWS_PROFILE, then AWS_DEFAULT_PROFILE, then "default".
"""

import argparse
import logging
import os
import sys
from typing import Mapping, Optional, Sequence

from . import __version__
from .config import Settings
from .exceptions import InvalidInputError, ShawsError
from .logging_setup import setup_logging
from .profiles import ConfigStore
from .session import SessionManager, SessionState, check_active_session, is_mfa_code
from .shell import (
    build_session_environment,
    interactive_command,
    one_shot_command,
    require_shell,
    spawn,
)

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130


def build_manager(settings: Settings) -> SessionManager:
    """Create the session manager for the given settings."""
    return SessionManager(
        store=ConfigStore(settings.config_file),
        role_session_name=settings.role_session_name,
    )


def format_remaining(check) -> str:
    """Format the time left on a session as e.g. '3h 07m'."""
    remaining = check.remaining
    if remaining is None:
        return ""
    minutes = int(remaining.total_seconds()) // 60
    return f"{minutes // 60}h {minutes % 60:02d}m"


def split_profile(values: Sequence[str], settings: Settings, usage: str):
    """
    Split an optional leading profile from a fixed-size argument list.

    Returns:
        Tuple of (profile, value)
    """
    if len(values) == 1:
        return settings.profile, values[0]
    if len(values) == 2:
        return values[0], values[1]
    raise InvalidInputError(f"usage: {usage}")


def handle_status(args, settings: Settings, env: Mapping[str, str]) -> int:
    """Handle the no-argument status check."""
    check = check_active_session(env)

    if check.state is SessionState.ACTIVE:
        session = check.session
        profile_str = f" for profile {session.profile}" if session.profile else ""
        print(f"Session active{profile_str}")
        print(f"  AWS_ACCESS_KEY_ID={session.access_key_id}")
        print(f"  Expires: {session.expiration_timestamp} ({format_remaining(check)} left)")
    elif check.state is SessionState.EXPIRED:
        print(f"Session expired at {check.session.expiration_timestamp}")
    else:
        print("No active session")

    return check.state.exit_code


def handle_attach(args, settings: Settings, env: Mapping[str, str]) -> int:
    """Handle the attach command."""
    profile, serial = split_profile(args.values, settings, "shaws attach [PROFILE] MFA_SERIAL")
    build_manager(settings).attach_device(profile, serial)
    print(f"✅ Attached {serial.strip()} to profile {profile}")
    return 0


def handle_list_devices(args, settings: Settings, env: Mapping[str, str]) -> int:
    """Handle the ls-devices command."""
    profile = args.profile or settings.profile
    devices = build_manager(settings).list_devices(profile)

    if not devices:
        print(f"No MFA devices found for profile {profile}")
        return 0

    for device in devices:
        print(device)
    return 0


def handle_profiles(args, settings: Settings, env: Mapping[str, str]) -> int:
    """Handle the profiles command."""
    profiles = ConfigStore(settings.config_file).list_profiles()
    if not profiles:
        print("No AWS profiles found.")
        return 0

    for p in profiles:
        marker = "→ " if p.name == settings.profile else "  "
        print(f"{marker}{p}")
    return 0


def handle_enter(args, settings: Settings, env: Mapping[str, str]) -> int:
    """Handle the enter command."""
    profile, token = split_profile(args.values, settings, "shaws enter [PROFILE] TOKEN_CODE")
    shell = require_shell(settings.shell)

    session = build_manager(settings).resolve_session(profile, token)
    print(f"Entering {shell} with a session for {profile}, expires {session.expiration_timestamp}",
          file=sys.stderr)

    return spawn(interactive_command(shell), build_session_environment(session, env))


def handle_run(args, settings: Settings, env: Mapping[str, str]) -> int:
    """Handle the run command."""
    usage = "shaws run [PROFILE] TOKEN_CODE (STRING | -) [ARGS...]"
    values = list(args.values)

    if values and is_mfa_code(values[0]):
        profile, token, rest = settings.profile, values[0], values[1:]
    elif len(values) >= 2:
        profile, token, rest = values[0], values[1], values[2:]
    else:
        raise InvalidInputError(f"usage: {usage}")

    if not rest:
        raise InvalidInputError(f"usage: {usage}")

    shell = require_shell(settings.shell)
    session = build_manager(settings).resolve_session(profile, token)

    argv = one_shot_command(shell, rest[0], rest[1:])
    return spawn(argv, build_session_environment(session, env))


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="shaws",
        description="Shells with temporary MFA-authenticated AWS credentials",
        epilog="Run without a command to show the state of the current session.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Attach command
    attach_parser = subparsers.add_parser("attach", help="Record the MFA device serial of a profile")
    attach_parser.add_argument("values", nargs="+", metavar="ARG", help="[PROFILE] MFA_SERIAL")
    attach_parser.set_defaults(func=handle_attach)

    # List devices command
    devices_parser = subparsers.add_parser("ls-devices", aliases=["list-devices"],
                                           help="List MFA devices of the profile's IAM user")
    devices_parser.add_argument("profile", nargs="?", help="Profile (uses current if not specified)")
    devices_parser.set_defaults(func=handle_list_devices)

    # Enter command
    enter_parser = subparsers.add_parser("enter", help="Start an interactive shell with a session")
    enter_parser.add_argument("values", nargs="+", metavar="ARG", help="[PROFILE] TOKEN_CODE")
    enter_parser.set_defaults(func=handle_enter)

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run a command string, or commands from stdin with '-', with a session",
    )
    run_parser.add_argument("values", nargs=argparse.REMAINDER, metavar="ARG",
                            help="[PROFILE] TOKEN_CODE (STRING | -) [ARGS...]")
    run_parser.set_defaults(func=handle_run)

    # Profiles command
    profiles_parser = subparsers.add_parser("profiles", help="List configured profiles")
    profiles_parser.set_defaults(func=handle_profiles)

    # Help command
    help_parser = subparsers.add_parser("help", help="Show this help message")
    help_parser.set_defaults(func=None)

    return parser


def main(argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    """
    Entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])
        env: Process environment (defaults to os.environ)

    Returns:
        Process exit code
    """
    if env is None:
        env = dict(os.environ)

    parser = create_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env(env)
    setup_logging(args.debug or settings.debug)

    if args.command == "help":
        parser.print_help()
        return 0

    handler = getattr(args, "func", None) or handle_status

    try:
        return handler(args, settings, env)
    except ShawsError as e:
        logger.debug("Failed with %s", type(e).__name__)
        print(f"❌ {e.message}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
