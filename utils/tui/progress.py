"""Transient status spinner for git operations."""

import logging
import time
from contextlib import contextmanager
from typing import Generator

from rich.console import Console
from rich.markup import escape

from utils.tui.theme import Theme

logger = logging.getLogger(__name__)


class Spinner:
    """Status line shown while skli waits on git or a provider CLI.

    The line disappears once the block exits; how long it took only goes to
    the log.
    """

    def __init__(self, console: Console, spinner: str = "dots"):
        self.console = console
        self.spinner = spinner

    @contextmanager
    def __call__(self, message: str = "Working...") -> Generator[None, None, None]:
        colors = Theme.get_colors()
        started = time.monotonic()
        with self.console.status(
            f"[{colors.primary}]{escape(message)}[/{colors.primary}]",
            spinner=self.spinner,
            spinner_style=colors.secondary,
        ):
            try:
                yield
            finally:
                logger.debug("%s took %.1fs", message, time.monotonic() - started)
