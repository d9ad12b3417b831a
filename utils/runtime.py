"""Runtime directory management for skli.

Per-user data lives under ~/.skli/:
- config: Preferences file (read-only for skli)
- logs/: Log files (only created with --verbose)

The lock file is project-local and does not live here.
"""

import os

RUNTIME_DIR = os.path.join(os.path.expanduser("~"), ".skli")


def get_config_file() -> str:
    """Get the configuration file path.

    Returns:
        Path to ~/.skli/config (or $SKLI_CONFIG when set)
    """
    return os.environ.get("SKLI_CONFIG", os.path.join(RUNTIME_DIR, "config"))


def get_log_dir() -> str:
    """Get the log directory path.

    Returns:
        Path to ~/.skli/logs/
    """
    return os.path.join(RUNTIME_DIR, "logs")


def ensure_runtime_dirs(create_logs: bool = False) -> None:
    """Ensure runtime directories exist.

    Args:
        create_logs: Whether to create the logs directory (for --verbose mode)
    """
    os.makedirs(RUNTIME_DIR, exist_ok=True)

    if create_logs:
        os.makedirs(get_log_dir(), exist_ok=True)
