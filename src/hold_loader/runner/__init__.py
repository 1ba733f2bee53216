"""Session runner, random bar streams and the command-line front end."""

from .dataset import generate_bars, random_hold_settings
from .session import LoadingSession

__all__ = ["LoadingSession", "generate_bars", "random_hold_settings"]
