"""Utility modules for skli: logging, runtime paths and terminal output."""

from . import terminal_ui
from .logger import get_log_file_path, setup_logger

# Runtime helpers are imported from utils.runtime directly; config.py
# duplicates their paths so importing it never pulls in this package.

__all__ = [
    "get_log_file_path",
    "setup_logger",
    "terminal_ui",
]
