"""Rich console output for skli commands.

Every string that comes from a repository, a lock file or a path is escaped
before it reaches console markup.
"""

from typing import Any, Dict, Iterable, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import Config
from skillsync.types import InstalledSkill, InstallResult, SyncOutcome, SyncStatus
from utils.tui.theme import Theme, set_theme

set_theme(Config.TUI_THEME if Config.TUI_THEME in ("dark", "light") else "dark")

console = Console(theme=Theme.get_rich_theme())


def _colors():
    return Theme.get_colors()


def _styled(style: str, text: str) -> str:
    return f"[{style}]{escape(text)}[/{style}]"


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    colors = _colors()
    content = f"[bold]{_styled(colors.primary, title)}[/bold]"
    if subtitle:
        content += "\n" + _styled(colors.text_secondary, subtitle)
    console.print(Panel(content, border_style=colors.primary, box=box.ROUNDED, padding=(0, 2)))


def print_config(config: Dict[str, Any]) -> None:
    """Two-column KEY / value table of the effective configuration."""
    colors = _colors()
    table = Table(show_header=False, box=box.SIMPLE, border_style=colors.text_muted, padding=(0, 2))
    table.add_column("Key", style=f"{colors.primary} bold")
    table.add_column("Value", style=colors.success)
    for key, value in config.items():
        table.add_row(key, escape(str(value)))
    console.print(table)


def print_error(message: str, title: str = "Error") -> None:
    """Error panel; ``message`` is usually ``str(SkliError)`` with git output appended."""
    colors = _colors()
    console.print(
        Panel(
            _styled(colors.error, message),
            title=f"[bold]{_styled(colors.error, title)}[/bold]",
            border_style=colors.error,
            box=box.ROUNDED,
        )
    )


def print_warning(message: str) -> None:
    console.print(_styled(_colors().warning, f"! {message}"))


def print_success(message: str) -> None:
    console.print(_styled(_colors().success, f"✓ {message}"))


def print_info(message: str) -> None:
    console.print(_styled(_colors().primary, f"ℹ {message}"))


def print_log_location(log_file: str) -> None:
    console.print()
    console.print(_styled(_colors().text_muted, f"Detailed logs: {log_file}"))


def print_skills_table(skills: Iterable[InstalledSkill]) -> None:
    """Installed and unmanaged skills, one row each, with origin and short commit."""
    table = Table(box=box.SIMPLE, border_style=_colors().text_muted, padding=(0, 1))
    table.add_column("Name", style="skill.name")
    table.add_column("Path", style="skill.path")
    table.add_column("Origin", style="skill.origin")
    table.add_column("Commit", style="skill.path")

    for skill in skills:
        origin = skill.origin_repo if skill.is_managed else "local (unmanaged)"
        if skill.is_managed and skill.origin_relative_path:
            origin = f"{origin} ({skill.origin_relative_path})"
        table.add_row(
            escape(skill.name),
            escape(skill.local_path),
            escape(origin),
            skill.commit_hash[:12] or "-",
        )

    console.print(table)


def print_install_results(results: Iterable[InstallResult]) -> None:
    for result in results:
        if result.ok:
            console.print(
                f"  [sync.updated]✔[/sync.updated] {_styled('skill.name', result.skill.name)} "
                f"{_styled('skill.path', '→ ' + str(result.destination))}"
            )
        else:
            console.print("  " + _styled("sync.error", f"✘ {result.error}"))


def print_sync_results(results: Iterable[SyncOutcome]) -> None:
    for outcome in results:
        if outcome.status == SyncStatus.ERROR:
            console.print("  " + _styled("sync.error", f"✘ {outcome.skill_name}: {outcome.reason or ''}"))
        elif outcome.status == SyncStatus.UPDATED:
            console.print("  " + _styled("sync.updated", f"✔ {outcome.skill_name} updated"))
        else:
            console.print("  " + _styled("sync.skipped", f"○ {outcome.skill_name} unchanged"))


def print_divider(width: int = 60) -> None:
    console.print(_styled(_colors().text_muted, "─" * width))
