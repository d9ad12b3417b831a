"""Terminal presentation helpers for skli.

- Theme support (dark/light modes)
- Progress spinner for long-running git operations
"""

from utils.tui.progress import Spinner
from utils.tui.theme import Theme, set_theme

__all__ = [
    "Spinner",
    "Theme",
    "set_theme",
]
