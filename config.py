"""Configuration management for skli."""

import os

# Define path constants directly to avoid circular imports with utils
# (utils.terminal_ui imports Config, and utils.runtime is in the utils package)
_RUNTIME_DIR = os.path.join(os.path.expanduser("~"), ".skli")
_CONFIG_FILE = os.path.join(_RUNTIME_DIR, "config")

# Reference template; skli never writes the preferences file itself.
DEFAULT_CONFIG = """\
# skli Configuration

# Where skills are installed, relative to the project directory
LOCAL_PATH=skills

# Remembered source repositories (comma separated)
REMOTES=

# Optional settings
LOCK_FILE=skli.lock
DEFAULT_SUB_PATH=skills
GIT_TIMEOUT=600
SYNC_MAX_CONCURRENCY=8
"""


def _load_config(path: str) -> dict[str, str]:
    """Parse a KEY=VALUE config file, skipping comments and blank lines."""
    cfg: dict[str, str] = {}
    if not os.path.isfile(path):
        return cfg
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            # Strip inline comments (# ...) from the value
            if "#" in value:
                value = value[: value.index("#")]
            cfg[key.strip()] = value.strip()
    return cfg


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


_cfg = _load_config(os.environ.get("SKLI_CONFIG", _CONFIG_FILE))


class Config:
    """Configuration for skli.

    All configuration is centralized here. Access config values directly via Config.XXX.
    """

    # User preferences
    LOCAL_PATH = _cfg.get("LOCAL_PATH") or "skills"
    REMOTES = _split_list(_cfg.get("REMOTES", ""))

    # Lock file and repository layout
    LOCK_FILE = _cfg.get("LOCK_FILE") or "skli.lock"
    DEFAULT_SUB_PATH = _cfg.get("DEFAULT_SUB_PATH") or "skills"

    # External processes (seconds, 0 disables the timeout)
    GIT_TIMEOUT = float(_cfg.get("GIT_TIMEOUT", "600"))

    # Sync Configuration (0 means one task per repository, unbounded)
    SYNC_MAX_CONCURRENCY = int(_cfg.get("SYNC_MAX_CONCURRENCY", "8"))

    # Logging Configuration
    # Note: Logging is controlled via --verbose flag, files go to ~/.skli/logs/
    LOG_LEVEL = _cfg.get("LOG_LEVEL", "DEBUG").upper()

    # Terminal output
    TUI_THEME = _cfg.get("TUI_THEME", "dark")  # "dark" or "light"

    @classmethod
    def as_dict(cls) -> dict[str, object]:
        return {
            "LOCAL_PATH": cls.LOCAL_PATH,
            "REMOTES": ", ".join(cls.REMOTES) or "-",
            "LOCK_FILE": cls.LOCK_FILE,
            "DEFAULT_SUB_PATH": cls.DEFAULT_SUB_PATH,
            "GIT_TIMEOUT": cls.GIT_TIMEOUT,
            "SYNC_MAX_CONCURRENCY": cls.SYNC_MAX_CONCURRENCY,
            "LOG_LEVEL": cls.LOG_LEVEL,
        }

    @classmethod
    def validate(cls):
        """Validate configuration.

        Raises:
            ValueError: If a setting is out of range
        """
        if cls.GIT_TIMEOUT < 0:
            raise ValueError("GIT_TIMEOUT must be >= 0 (0 disables it). Check ~/.skli/config.")
        if cls.SYNC_MAX_CONCURRENCY < 0:
            raise ValueError("SYNC_MAX_CONCURRENCY must be >= 0. Check ~/.skli/config.")
        if cls.TUI_THEME not in ("dark", "light"):
            raise ValueError("TUI_THEME must be 'dark' or 'light'. Check ~/.skli/config.")
