# codeweaver/core/models.py
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger

from .paths import normalize_path


class EntryType(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class FileAction(str, Enum):
    CREATE_FILE = "createFile"
    UPDATE_FILE = "updateFile"
    DELETE_FILE = "deleteFile"
    CREATE_DIRECTORY = "createDirectory"


_clock_lock = threading.Lock()
_last_timestamp = 0


def next_timestamp() -> int:
    """Milliseconds since the epoch, strictly increasing within the process."""
    global _last_timestamp
    with _clock_lock:
        now = time.time_ns() // 1_000_000
        _last_timestamp = max(now, _last_timestamp + 1)
        return _last_timestamp


@dataclass
class ProjectEntry:
    """One node of the virtual project tree. Folder paths end with '/'."""
    path: str
    type: EntryType
    content: str = "" # Always empty for folders
    last_modified: int = field(default_factory=next_timestamp)

    @property
    def is_folder(self) -> bool:
        return self.type == EntryType.FOLDER

    @property
    def is_file(self) -> bool:
        return self.type == EntryType.FILE

    @classmethod
    def file(cls, path: str, content: str = "") -> "ProjectEntry":
        return cls(path=path, type=EntryType.FILE, content=content)

    @classmethod
    def folder(cls, path: str) -> "ProjectEntry":
        return cls(path=path, type=EntryType.FOLDER)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "type": self.type.value, "content": self.content, "lastModified": self.last_modified}


@dataclass
class FileOperation:
    """
    A single instruction from the AI (or an internal callback).
    `action` stays a plain string so unknown actions survive until the reducer rejects them.
    """
    action: str
    path: str
    content: Optional[str] = None

    def __post_init__(self):
        self.path = normalize_path(self.path)
        if isinstance(self.action, FileAction):
            self.action = self.action.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileOperation":
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            logger.warning(f"Non-string content for {data.get('path')!r}, converting to text.")
            content = str(content)
        # null or non-string action/path become "" so the reducer rejects the operation
        action, path = data.get("action"), data.get("path")
        return cls(action=action if isinstance(action, str) else "",
                   path=path if isinstance(path, str) else "",
                   content=content)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"action": self.action, "path": self.path}
        if self.content is not None:
            data["content"] = self.content
        return data


@dataclass
class OperationResult:
    """Outcome of applying a FileOperation batch."""
    entries: List[ProjectEntry]
    active_path: Optional[str]
    messages: List[str] = field(default_factory=list) # Advisory status lines, in order
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    errors: int = 0

    @property
    def ok(self) -> bool:
        return self.errors == 0


@dataclass
class ChatMessage:
    sender: str # "user" or "assistant"
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    file_operations: List[FileOperation] = field(default_factory=list)


@dataclass
class PreviewResult:
    """What a preview of the active file would show."""
    ok: bool
    message: str
    url: Optional[str] = None
    mime_type: Optional[str] = None
