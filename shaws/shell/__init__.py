"""
Host shell launching for resolved sessions.
"""

from .launcher import (
    STDIN_MARKER,
    build_session_environment,
    interactive_command,
    one_shot_command,
    require_shell,
    spawn,
)
