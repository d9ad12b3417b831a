"""Logging configuration for skli.

Nothing is logged unless ``--verbose`` is passed; then every record of the
``skillsync`` engine (git invocations, lock file writes, sync decisions) goes
to one file per run under ~/.skli/logs/.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .runtime import get_log_dir

# Loggers that are too chatty at DEBUG to be useful in a run log
_QUIET_LOGGERS = ("asyncio",)

_log_file_path: Optional[str] = None


def setup_logger(
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    command: Optional[str] = None,
) -> Optional[str]:
    """Send log records to a timestamped file for this run.

    Calling it again after a successful setup is a no-op.

    Args:
        log_dir: Directory to store log files (default: ~/.skli/logs/)
        log_level: Logging level name (default: Config.LOG_LEVEL)
        command: Sub-command being run, used in the file name

    Returns:
        Path of the log file
    """
    global _log_file_path

    if _log_file_path is not None:
        return _log_file_path

    from config import Config

    level_name = (log_level or Config.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.DEBUG)
    logging.root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log_path = Path(log_dir or get_log_dir())
    log_path.mkdir(exist_ok=True, parents=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = f"_{command}" if command else ""
    log_file = log_path / f"skli{suffix}_{timestamp}.log"

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    logging.root.addHandler(handler)
    _log_file_path = str(log_file)

    logging.getLogger(__name__).info(
        "Logging initialized. Level: %s, File: %s, Config: %s",
        level_name,
        _log_file_path,
        Config.as_dict(),
    )
    return _log_file_path


def get_log_file_path() -> Optional[str]:
    """Path of the current run's log file, or None when logging is off."""
    return _log_file_path
