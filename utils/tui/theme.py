"""Dark and light color themes for skli's terminal output."""

from dataclasses import dataclass
from typing import Dict

from rich.style import Style
from rich.theme import Theme as RichTheme


@dataclass
class ThemeColors:
    primary: str  # headings, skill names
    secondary: str  # panel titles
    success: str  # installed / updated
    warning: str
    error: str
    text_primary: str
    text_secondary: str  # origins, descriptions
    text_muted: str  # paths, hashes, unchanged skills


DARK_THEME = ThemeColors(
    primary="#00D9FF",
    secondary="#A78BFA",
    success="#10B981",
    warning="#F59E0B",
    error="#EF4444",
    text_primary="#F0F6FC",
    text_secondary="#8B949E",
    text_muted="#484F58",
)

LIGHT_THEME = ThemeColors(
    primary="#0969DA",
    secondary="#8250DF",
    success="#1A7F37",
    warning="#9A6700",
    error="#CF222E",
    text_primary="#1F2328",
    text_secondary="#57606A",
    text_muted="#8C959F",
)


class Theme:
    """Active theme, selected once from Config.TUI_THEME."""

    _current_theme: str = "dark"
    _themes: Dict[str, ThemeColors] = {
        "dark": DARK_THEME,
        "light": LIGHT_THEME,
    }

    @classmethod
    def get_colors(cls) -> ThemeColors:
        return cls._themes[cls._current_theme]

    @classmethod
    def set_theme(cls, name: str) -> None:
        """Switch the active theme.

        Raises:
            ValueError: If theme name is invalid
        """
        if name not in cls._themes:
            raise ValueError(f"Unknown theme: {name}. Available: {list(cls._themes.keys())}")
        cls._current_theme = name

    @classmethod
    def get_rich_theme(cls) -> RichTheme:
        """Named styles usable in console markup, e.g. ``[sync.updated]``."""
        colors = cls.get_colors()
        return RichTheme(
            {
                "skill.name": Style(color=colors.primary, bold=True),
                "skill.origin": Style(color=colors.text_secondary),
                "skill.path": Style(color=colors.text_muted),
                "sync.updated": Style(color=colors.success),
                "sync.skipped": Style(color=colors.text_muted),
                "sync.error": Style(color=colors.error),
            }
        )


def set_theme(name: str) -> None:
    Theme.set_theme(name)
