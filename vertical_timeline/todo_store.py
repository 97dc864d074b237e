"""
Todo Store

Reads and writes the todo data folder: one markdown checklist of unchecked
items plus one checklist per calendar day of completed items.

Layout:
    <data folder>/todo.md         - [ ] <title>   (replaced on every save)
    <data folder>/YYYY-MM-DD.md   - [x] <title>   (one file per day)

Only checklist lines are read; anything else in todo.md is lost on the next
save. Day files keep their other lines when rewritten. A file that exists
but cannot be read or decoded loads as empty and is then never overwritten,
so its content survives until it is fixed by hand.

Folder resolution:
    The folder chosen by the user is remembered as a FolderToken in the
    settings database. At startup the token is resolved; if the folder is
    gone or unusable the store falls back to the default folder and records
    why in `fallback_error` instead of failing.
"""

from datetime import date
from pathlib import Path
from typing import Optional
import contextlib
import logging
import os
import re

from .errors import (
    TodoStorageError,
    FolderAccessDenied,
    FolderCreationFailed,
    FileAccessError,
    InvalidFolder,
)
from .folder_settings import FolderSettings
from .models import TodoItem, FolderToken, ACTIVE_PREFIX, COMPLETED_PREFIX
from . import config

logger = logging.getLogger(__name__)

DAY_FILE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\.md$")


def day_filename(day: date) -> str:
    """File name holding the items completed on `day`."""
    return f"{day.isoformat()}.md"


class TodoStore:
    """
    File-backed storage for active and completed todos.

    All reads and writes are whole-file. Loaders never raise for I/O
    problems: a missing or unreadable file is an empty list. Savers raise
    FileAccessError.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        settings: Optional[FolderSettings] = None,
        default_dir: Optional[Path] = None,
        active_filename: Optional[str] = None,
    ):
        """
        Initialize the store and resolve the data folder.

        Args:
            data_dir: Use this folder instead of the remembered one
            settings: FolderSettings instance (creates default if None)
            default_dir: Fallback folder (env: TIMELINE_DATA_DIR)
            active_filename: Name of the active file (env: TIMELINE_ACTIVE_FILENAME)

        Raises:
            FolderCreationFailed: if not even the default folder can be created.
        """
        self.settings = settings or FolderSettings()
        self.default_dir = Path(default_dir) if default_dir else config.DEFAULT_DATA_DIR
        self.active_filename = active_filename or config.ACTIVE_FILENAME

        self.data_dir = self.default_dir
        self.is_using_default_folder = True
        self.fallback_error: Optional[TodoStorageError] = None

        # Paths whose last read failed; never overwritten until readable again
        self._unreadable: dict[Path, Exception] = {}

        if data_dir is not None:
            self._adopt(Path(data_dir))
        else:
            self._resolve_saved_folder()

        self._ensure_data_folder()

    # =========================================================================
    # Folder resolution
    # =========================================================================

    def _adopt(self, path: Path):
        self.data_dir = path
        self.is_using_default_folder = path == self.default_dir

    def _use_default(self):
        self.data_dir = self.default_dir
        self.is_using_default_folder = True

    def _fall_back(self, error: TodoStorageError):
        logger.warning(f"{error} Using default folder {self.default_dir}")
        self.fallback_error = error
        self._use_default()
        self.settings.log_action("fallback", str(error.path), {"reason": str(error)})

    @staticmethod
    def _check_access(path: Path):
        """Raise FolderAccessDenied unless the folder is readable and writable."""
        if not os.access(path, os.R_OK | os.W_OK | os.X_OK):
            raise FolderAccessDenied(path)

    def _resolve_saved_folder(self):
        """Resolve the remembered folder, falling back to the default."""
        token = self.settings.get_token()
        if token is not None:
            try:
                self._open_token(token)
            except TodoStorageError as e:
                self._fall_back(e)
            return

        # Older settings only kept the plain path
        legacy = self.settings.get_legacy_path()
        if legacy is None:
            return
        try:
            if not legacy.is_dir():
                raise InvalidFolder(legacy)
            self._check_access(legacy)
            self.settings.save_token(FolderToken.for_folder(legacy))
            self._adopt(legacy)
            logger.info(f"Migrated saved folder path to token: {legacy}")
        except TodoStorageError as e:
            self._fall_back(e)

    def _open_token(self, token: FolderToken):
        path = Path(token.path)
        if not path.is_dir():
            raise InvalidFolder(path)
        self._check_access(path)

        if token.is_stale(path.stat()):
            logger.info(f"Folder token for {path} is stale, refreshing")
            try:
                self.settings.save_token(FolderToken.for_folder(path))
            except TodoStorageError as e:
                logger.warning(f"Could not refresh folder token: {e}")

        self._adopt(path)
        logger.info(f"Using saved data folder: {path}")

    def _ensure_data_folder(self):
        """Create the data folder, falling back to the default one on failure."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            return
        except OSError as e:
            if self.is_using_default_folder:
                raise FolderCreationFailed(self.data_dir, e) from e
            self._fall_back(FolderCreationFailed(self.data_dir, e))

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create even the default folder: {e}")
            raise FolderCreationFailed(self.data_dir, e) from e

    def change_data_folder(self, new_folder) -> Path:
        """
        Switch to a new data folder and remember it for future starts.

        The folder is created if missing and must be readable and writable.
        Nothing changes unless the new token was persisted.

        Returns:
            The folder now in use.
        """
        path = Path(new_folder).expanduser()
        if not path.exists():
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FolderCreationFailed(path, e) from e
        if not path.is_dir():
            raise InvalidFolder(path)
        self._check_access(path)

        self.settings.save_token(FolderToken.for_folder(path))
        self._adopt(path)
        self.is_using_default_folder = False
        self.fallback_error = None
        self.settings.log_action("change", str(path))
        logger.info(f"Data folder changed to: {path}")
        return path

    def reset_to_default_folder(self) -> Path:
        """Forget the chosen folder and use the default one."""
        self.settings.clear_token()
        self._use_default()
        self.fallback_error = None
        self._ensure_data_folder()
        self.settings.log_action("reset", str(self.default_dir))
        logger.info(f"Data folder reset to default: {self.default_dir}")
        return self.data_dir

    def current_folder_path(self) -> str:
        """Get the current data folder path in a human-readable format."""
        return str(self.data_dir)

    # =========================================================================
    # File helpers
    # =========================================================================

    @property
    def active_path(self) -> Path:
        return self.data_dir / self.active_filename

    def completed_path(self, day: date) -> Path:
        return self.data_dir / day_filename(day)

    def _read_lines(self, path: Path) -> list[str]:
        """
        Read a file as lines; a missing or unreadable file has none.

        An unreadable file is remembered so a later save cannot replace
        content that was never loaded.
        """
        if not path.exists():
            self._unreadable.pop(path, None)
            return []
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {path}: {e}")
            self._unreadable[path] = e
            return []
        self._unreadable.pop(path, None)
        return lines

    def _write_text(self, path: Path, content: str):
        """
        Replace a file's content atomically.

        Raises:
            FileAccessError: if the write fails, or if the file could not be
                read when it was last loaded.
        """
        if path in self._unreadable:
            logger.error(f"Refusing to overwrite unreadable file {path}")
            raise FileAccessError(path, self._unreadable[path])

        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Error writing {path}: {e}")
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise FileAccessError(path, e) from e

    # =========================================================================
    # Active todos
    # =========================================================================

    def load_active(self, today: Optional[date] = None) -> list[TodoItem]:
        """
        Load unchecked items.

        The active file carries no dates, so every item is scheduled for
        `today` (the day of loading).
        """
        day = today or date.today()
        items = []
        for line in self._read_lines(self.active_path):
            item = TodoItem.parse_line(line, completed=False, day=day)
            if item is not None:
                items.append(item)
        return items

    def save_active(self, items: list[TodoItem]):
        """Replace the active file with one line per item."""
        content = "\n".join(f"{ACTIVE_PREFIX}{t.title}" for t in items)
        self._write_text(self.active_path, content)

    # =========================================================================
    # Completed todos
    # =========================================================================

    def load_completed(self, day: date) -> list[TodoItem]:
        """Load the items completed on `day`."""
        items = []
        for line in self._read_lines(self.completed_path(day)):
            item = TodoItem.parse_line(line, completed=True, day=day)
            if item is not None:
                items.append(item)
        return items

    def save_completed(self, items: list[TodoItem], day: date):
        """
        Append items to the file for `day`.

        Existing content is kept and the new lines are added after it, so
        passing the same items twice writes them twice. An empty list is a
        no-op and never creates a file.
        """
        if not items:
            return

        path = self.completed_path(day)
        content = "\n".join(self._completed_lines(items))
        existing = "\n".join(self._read_lines(path))
        self._write_text(path, f"{existing}\n{content}" if existing else content)

    def replace_completed(self, items: list[TodoItem], day: date):
        """
        Rewrite the file for `day` so its completed entries are exactly `items`.

        Lines that are not completed entries (headings, notes) are kept at
        the top of the file; blank lines are dropped. An empty list never
        creates a missing file, and an emptied file is not deleted.
        """
        path = self.completed_path(day)
        if not items and not path.exists():
            return
        kept = [
            line for line in self._read_lines(path)
            if line.strip() and TodoItem.parse_line(line, completed=True, day=day) is None
        ]
        self._write_text(path, "\n".join(kept + self._completed_lines(items)))

    @staticmethod
    def _completed_lines(items: list[TodoItem]) -> list[str]:
        return [f"{COMPLETED_PREFIX}{t.title}" for t in items]

    def list_completed_days(self) -> list[date]:
        """Days that have a completed file, sorted ascending."""
        try:
            names = os.listdir(self.data_dir)
        except OSError as e:
            logger.error(f"Error listing {self.data_dir}: {e}")
            return []

        days = set()
        for name in names:
            if name == self.active_filename:
                continue
            match = DAY_FILE_RE.match(name)
            if not match:
                continue
            try:
                days.add(date.fromisoformat(match.group(1)))
            except ValueError:
                continue
        return sorted(days)
