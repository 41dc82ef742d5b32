"""
Profile configuration access for shaws.
"""

from .profile_manager import (
    ConfigStore,
    Profile,
)
