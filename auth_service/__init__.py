"""Account registration, login and session-token service."""

from .config import Settings, get_settings
from .main import create_app

__all__ = [
    "Settings",
    "create_app",
    "get_settings",
]
