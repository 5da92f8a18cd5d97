# codeweaver/core/project_store.py
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from .edit_tracker import EditSnapshotTracker
from .errors import StructureConflictError
from .file_ops import apply_operations
from .models import EntryType, FileOperation, OperationResult, ProjectEntry, next_timestamp
from .paths import entry_key, language_for_path, normalize_path, parent_folders, sort_entries
from .structure_parser import parse_structure

DEFAULT_GITLAB_PATH = "src/app/main.py"


class ProjectStore:
    """
    Owns the virtual project: its entries, the active file and pending AI edits.
    Every mutating method leaves the entry set sorted, free of orphans and
    duplicates, and the active pointer on an existing file or None.
    Problems are reported as status strings, never raised.
    """

    def __init__(self,
                 entries: Iterable[ProjectEntry] = (),
                 active_path: Optional[str] = None,
                 default_gitlab_path: str = DEFAULT_GITLAB_PATH):
        # Route the initial entries through the reducer so ancestors exist and order is canonical
        ops = [FileOperation("createDirectory", e.path) if e.is_folder else FileOperation("updateFile", e.path, e.content)
               for e in entries]
        initial = apply_operations([], ops)
        self._entries: List[ProjectEntry] = initial.entries
        self._active_path: Optional[str] = None
        self._edits = EditSnapshotTracker()
        self._default_gitlab_path = default_gitlab_path
        self.status: str = "Ready."
        for message in initial.messages:
            if message.startswith("Error"):
                logger.warning(f"Initial entry skipped. {message}")
                self.status = message
        if active_path is not None:
            self.select_file(active_path)
        logger.debug(f"ProjectStore initialized with {len(self._entries)} entries, active={self._active_path}")

    @classmethod
    def from_config(cls, config) -> "ProjectStore":
        """Builds the starter project from AppConfig.default_project_files; the first file is opened."""
        entries = [ProjectEntry(path=f.path, type=EntryType(f.type), content=f.content)
                   for f in config.default_project_files]
        first_file = next((e.path for e in entries if e.is_file), None)
        return cls(entries, active_path=first_file, default_gitlab_path=config.gitlab.default_file_path)

    # --- Read API ---

    @property
    def entries(self) -> List[ProjectEntry]:
        return list(self._entries)

    @property
    def files(self) -> List[ProjectEntry]:
        return [e for e in self._entries if e.is_file]

    @property
    def folders(self) -> List[ProjectEntry]:
        return [e for e in self._entries if e.is_folder]

    def get(self, path: str) -> Optional[ProjectEntry]:
        key = entry_key(normalize_path(path))
        for entry in self._entries:
            if entry_key(entry.path) == key:
                return entry
        return None

    def _get_file(self, path: str) -> Optional[ProjectEntry]:
        entry = self.get(path)
        return entry if entry is not None and entry.is_file else None

    @property
    def active_path(self) -> Optional[str]:
        return self._active_path

    @property
    def active_entry(self) -> Optional[ProjectEntry]:
        return self._get_file(self._active_path) if self._active_path else None

    @property
    def active_content(self) -> str:
        entry = self.active_entry
        return entry.content if entry else ""

    @property
    def language(self) -> str:
        return language_for_path(self._active_path)

    @property
    def gitlab_target_path(self) -> str:
        return self._active_path or self._default_gitlab_path

    def has_pending_edit(self, path: str) -> bool:
        return normalize_path(path) in self._edits

    def pending_original(self, path: str) -> Optional[str]:
        return self._edits.original(normalize_path(path))

    def pending_paths(self) -> List[str]:
        return self._edits.paths()

    def pending_diff(self, path: str) -> List[str]:
        path = normalize_path(path)
        entry = self._get_file(path)
        return self._edits.diff(path, entry.content) if entry else []

    def set_status(self, message: str) -> str:
        self.status = message
        logger.info(message)
        return message

    # --- Mutations ---

    def select_file(self, path: str) -> bool:
        entry = self._get_file(path)
        if entry is None:
            logger.debug(f"select_file ignored, no file at {path!r}")
            return False
        self._active_path = entry.path
        return True

    def _write_content(self, path: str, content: str) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.path == path and entry.is_file:
                self._entries[index] = replace(entry, content=content, last_modified=next_timestamp())
                return True
        return False

    def set_active_content(self, content: str) -> bool:
        if self._active_path is None:
            return False
        return self._write_content(self._active_path, content)

    def begin_direct_edit(self, path: str, proposed_content: str) -> bool:
        """Writes an AI-proposed version of `path`, keeping the pre-edit content for revert."""
        entry = self._get_file(path)
        if entry is None:
            self.set_status(f"Cannot edit {path}: no such file.")
            return False
        self._active_path = entry.path
        self._edits.record(entry.path, entry.content)
        self.set_active_content(proposed_content)
        self.set_status(f"AI edited {entry.path}. Review, then accept or discard.")
        return True

    def accept_edit(self, path: str) -> bool:
        path = normalize_path(path)
        if self._edits.release(path) is None:
            return False
        self.set_status(f"Changes applied to {path}.")
        return True

    def discard_edit(self, path: str) -> bool:
        path = normalize_path(path)
        original = self._edits.original(path)
        if original is None:
            return False
        self._write_content(path, original)
        self._edits.release(path)
        self.set_status(f"Changes discarded for {path}.")
        return True

    def apply_operations(self, operations: Sequence[FileOperation]) -> OperationResult:
        result = apply_operations(self._entries, operations, self._active_path)
        self._entries = result.entries
        self._active_path = result.active_path
        self._edits.forget(result.deleted)
        if result.messages:
            self.status = result.messages[-1]
        return result

    def import_structure(self, text: str) -> List[str]:
        if not text.strip():
            return [self.set_status("Structure text is empty.")]
        try:
            entries = parse_structure(text, self._entries)
        except StructureConflictError as e:
            logger.warning(f"Structure import rejected: {e}")
            return [self.set_status(f"Error parsing structure: {e}")]
        added = len(entries) - len(self._entries)
        self._entries = entries
        return [self.set_status(f"Project structure updated ({added} new entries).")]

    def check_invariants(self) -> List[str]:
        """Lists every broken invariant; empty when the store is consistent."""
        problems = []
        keys = [entry_key(e.path) for e in self._entries]
        if len(keys) != len(set(keys)):
            problems.append("duplicate paths")
        by_key = {entry_key(e.path): e for e in self._entries}
        for entry in self._entries:
            if entry.is_folder != entry.path.endswith("/"):
                problems.append(f"folder suffix mismatch at {entry.path}")
            for folder in parent_folders(entry.path):
                parent = by_key.get(entry_key(folder))
                if parent is None or not parent.is_folder:
                    problems.append(f"missing folder {folder} for {entry.path}")
        if sort_entries(self._entries) != self._entries:
            problems.append("entries out of canonical order")
        if self._active_path is not None and self._get_file(self._active_path) is None:
            problems.append(f"dangling active path {self._active_path}")
        return problems
