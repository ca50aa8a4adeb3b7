"""File path resolution using platformdirs.

Persistent data (SQLite database, credential key file) lives in the
platform user data directory unless CHATRELAY_DATA_DIR overrides it:
  macOS: ~/Library/Application Support/chatrelay/
  Linux: ~/.local/share/chatrelay/
  Windows: %LOCALAPPDATA%/chatrelay/
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "chatrelay"


def get_data_dir() -> Path:
    """Return the directory for persistent data (DB, key file)."""
    override = os.environ.get("CHATRELAY_DATA_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_data_dir() / "chatrelay.db"


def ensure_dirs_exist() -> None:
    """Create the data directory if it doesn't exist."""
    get_data_dir().mkdir(parents=True, exist_ok=True)
