"""
Data Models for the Vertical Timeline

Defines the TodoItem model, the per-day view result and the persisted
folder access token.
"""

from dataclasses import dataclass, field
import datetime as dt
from typing import Optional
import base64
import json
import os
import re
import uuid

ACTIVE_PREFIX = "- [ ] "
COMPLETED_PREFIX = "- [x] "

_LINE_RE = re.compile(r"^- \[(?P<mark>[ x])\] (?P<title>.*\S.*)$")


@dataclass
class TodoItem:
    """
    A single checklist entry.

    Identity is the `id`; a completed item and the active item it came from
    are distinct objects with distinct ids.
    """
    title: str
    is_completed: bool = False
    date: dt.date = field(default_factory=dt.date.today)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        """Ensure the day is a date object."""
        if isinstance(self.date, str):
            self.date = dt.date.fromisoformat(self.date)
        elif isinstance(self.date, dt.datetime):
            self.date = self.date.date()

    def to_line(self) -> str:
        """Render as a markdown checklist line."""
        prefix = COMPLETED_PREFIX if self.is_completed else ACTIVE_PREFIX
        return f"{prefix}{self.title}"

    @classmethod
    def parse_line(cls, line: str, completed: bool, day: dt.date) -> Optional["TodoItem"]:
        """
        Parse one checklist line.

        Returns None for blank lines, lines that are not checklist entries,
        and entries of the other kind (a `- [x]` line when reading active
        items and vice versa).
        """
        match = _LINE_RE.match(line.rstrip("\r"))
        if not match:
            return None
        if (match.group("mark") == "x") != completed:
            return None
        return cls(title=match.group("title"), is_completed=completed, date=day)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "is_completed": self.is_completed,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TodoItem":
        """Create from dictionary."""
        return cls(
            id=data.get("id", str(uuid.uuid4())),
            title=data["title"],
            is_completed=data.get("is_completed", False),
            date=data.get("date", dt.date.today()),
        )


@dataclass
class DayTodos:
    """Items shown under one day of the timeline."""
    active: list = field(default_factory=list)
    completed: list = field(default_factory=list)

    def __iter__(self):
        return iter((self.active, self.completed))

    def is_empty(self) -> bool:
        return not self.active and not self.completed


@dataclass
class FolderToken:
    """
    Opaque access token for a user-chosen data folder.

    Records the folder path together with the device/inode pair it had when
    the token was issued, so a folder that was replaced by another one at
    the same path can be told apart (the token is then stale).
    """
    path: str
    device: int = 0
    inode: int = 0
    created_at: Optional[dt.datetime] = None

    @classmethod
    def for_folder(cls, path) -> "FolderToken":
        """Issue a token for an existing folder."""
        st = os.stat(path)
        return cls(
            path=str(path),
            device=st.st_dev,
            inode=st.st_ino,
            created_at=dt.datetime.now(),
        )

    def is_stale(self, st: os.stat_result) -> bool:
        return (st.st_dev, st.st_ino) != (self.device, self.inode)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "device": self.device,
            "inode": self.inode,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FolderToken":
        created = data.get("created_at")
        return cls(
            path=data["path"],
            device=data.get("device", 0),
            inode=data.get("inode", 0),
            created_at=dt.datetime.fromisoformat(created) if created else None,
        )

    @classmethod
    def from_base64(cls, encoded: str) -> Optional["FolderToken"]:
        """Decode from Base64-encoded JSON string."""
        if not encoded:
            return None
        try:
            decoded = base64.b64decode(encoded).decode("utf-8")
            return cls.from_dict(json.loads(decoded))
        except (ValueError, KeyError, TypeError, AttributeError):
            return None

    def to_base64(self) -> str:
        """Encode to Base64 JSON string for storage."""
        json_str = json.dumps(self.to_dict())
        return base64.b64encode(json_str.encode("utf-8")).decode("utf-8")
