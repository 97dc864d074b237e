"""
Folder Settings Persistence

Maintains a SQLite database holding the access token of the user-chosen
data folder, so the choice survives restarts, plus an audit log of
folder changes.
"""

import sqlite3
from pathlib import Path
from datetime import datetime
from typing import Optional
import json
import logging

from .errors import BookmarkCreationFailed
from .models import FolderToken
from . import config

logger = logging.getLogger(__name__)

# Settings keys
FOLDER_TOKEN_KEY = "data_folder_token"
LEGACY_FOLDER_PATH_KEY = "data_folder_path"


class FolderSettings:
    """
    Manages the persisted folder choice in a SQLite database.

    Schema:
    - settings: key/value pairs (the folder token lives here)
    - folder_log: Audit log of folder resolution and changes
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the settings database.

        Args:
            db_path: Path to the SQLite database (env: TIMELINE_SETTINGS_DB)
        """
        if db_path is None:
            db_path = config.SETTINGS_DB

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS folder_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp INTEGER NOT NULL,
                    action TEXT NOT NULL,
                    path TEXT,
                    details TEXT
                )
            """)

            conn.commit()

    def _get(self, key: str) -> Optional[str]:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?",
                (key,)
            ).fetchone()
        return row[0] if row else None

    def _set(self, key: str, value: str):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, value)
            )
            conn.commit()

    def get_token(self) -> Optional[FolderToken]:
        """Get the persisted folder token, or None if unset or unreadable."""
        encoded = self._get(FOLDER_TOKEN_KEY)
        if encoded is None:
            return None
        token = FolderToken.from_base64(encoded)
        if token is None:
            logger.warning("Discarding unreadable folder token")
        return token

    def save_token(self, token: FolderToken):
        """
        Persist a folder token, replacing any previous one.

        Raises:
            BookmarkCreationFailed: if the database cannot be written.
        """
        try:
            self._set(FOLDER_TOKEN_KEY, token.to_base64())
            self._set(LEGACY_FOLDER_PATH_KEY, token.path)
        except sqlite3.Error as e:
            raise BookmarkCreationFailed(token.path, e) from e

    def get_legacy_path(self) -> Optional[Path]:
        """Get a folder saved as a plain path by older versions."""
        value = self._get(LEGACY_FOLDER_PATH_KEY)
        return Path(value) if value else None

    def clear_token(self):
        """Forget the chosen folder."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "DELETE FROM settings WHERE key IN (?, ?)",
                (FOLDER_TOKEN_KEY, LEGACY_FOLDER_PATH_KEY)
            )
            conn.commit()

    def log_action(self, action: str, path: Optional[str] = None, details: Optional[dict] = None):
        """Log a folder action for auditing."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO folder_log (timestamp, action, path, details)
                VALUES (?, ?, ?, ?)
            """, (
                int(datetime.now().timestamp()),
                action,
                path,
                json.dumps(details) if details else None,
            ))
            conn.commit()

    def get_recent_logs(self, limit: int = 20) -> list[dict]:
        """Get recent folder log entries, newest first."""
        logs = []
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                "SELECT * FROM folder_log ORDER BY timestamp DESC, id DESC LIMIT ?",
                (limit,)
            )
            for row in cursor:
                logs.append({
                    "id": row["id"],
                    "timestamp": datetime.fromtimestamp(row["timestamp"]),
                    "action": row["action"],
                    "path": row["path"],
                    "details": json.loads(row["details"]) if row["details"] else None,
                })
        return logs
