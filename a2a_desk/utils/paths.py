"""File path resolution using platformdirs.

The SQLite database lives in the platform user data dir:
  macOS: ~/Library/Application Support/a2a-desk/a2a-client-db/index.db
  Linux: ~/.local/share/a2a-desk/a2a-client-db/index.db
  Windows: %LOCALAPPDATA%/a2a-desk/a2a-client-db/index.db

A2A_DESK_DATA_DIR overrides the base directory (tests, portable installs).
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "a2a-desk"
DB_DIR_NAME = "a2a-client-db"
DB_FILE_NAME = "index.db"


def get_data_dir() -> Path:
    """Return the directory for persistent data (DB, config)."""
    override = os.environ.get("A2A_DESK_DATA_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_db_dir() -> Path:
    """Return the directory holding the SQLite database file."""
    return get_data_dir() / DB_DIR_NAME


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_db_dir() / DB_FILE_NAME


def ensure_dirs_exist() -> None:
    """Create all required directories if they don't exist."""
    get_db_dir().mkdir(parents=True, exist_ok=True)
