# codeweaver/core/file_ops.py
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

from loguru import logger

from .models import EntryType, FileAction, FileOperation, OperationResult, ProjectEntry, next_timestamp
from .paths import entry_key, is_under, normalize_folder_path, parent_folders, sort_entries


class WorkingSet:
    """
    Entries keyed by path key, in insertion order. Every operation in a batch reads
    and writes this same object, so later operations see earlier effects.
    """

    def __init__(self, entries: Iterable[ProjectEntry]):
        # Copies, so the caller's entries are never mutated
        self._by_key: Dict[str, ProjectEntry] = {entry_key(e.path): replace(e) for e in entries}

    def get(self, path: str) -> Optional[ProjectEntry]:
        return self._by_key.get(entry_key(path))

    def put(self, entry: ProjectEntry) -> None:
        # Assigning an existing key keeps its slot: type changes happen in place
        self._by_key[entry_key(entry.path)] = entry

    def pop(self, path: str) -> Optional[ProjectEntry]:
        return self._by_key.pop(entry_key(path), None)

    def descendants(self, folder_path: str) -> List[ProjectEntry]:
        return [e for e in self._by_key.values() if is_under(e.path, folder_path)]

    def blocking_ancestor(self, path: str) -> Optional[str]:
        """First ancestor of `path` that exists as a file, if any."""
        for folder in parent_folders(path):
            existing = self.get(folder)
            if existing is not None and existing.is_file:
                return existing.path
        return None

    def materialize_ancestors(self, path: str) -> List[str]:
        """Adds a folder entry for every missing ancestor. Returns the folders added."""
        added = []
        for folder in parent_folders(path):
            if self.get(folder) is None:
                self.put(ProjectEntry.folder(folder))
                added.append(folder)
        return added

    def values(self) -> List[ProjectEntry]:
        return list(self._by_key.values())


class _BatchReducer:
    def __init__(self, entries: Iterable[ProjectEntry], active_path: Optional[str]):
        self.work = WorkingSet(entries)
        self.result = OperationResult(entries=[], active_path=active_path)

    def _report(self, message: str, error: bool = False) -> None:
        self.result.messages.append(message)
        if error:
            self.result.errors += 1
            logger.warning(message)
        else:
            logger.debug(message)

    def apply(self, op: FileOperation) -> None:
        if not op.path:
            self._report(f"Error: Missing path for {op.action}", error=True)
            return
        if op.action in (FileAction.CREATE_FILE.value, FileAction.UPDATE_FILE.value):
            self._write_file(op)
        elif op.action == FileAction.DELETE_FILE.value:
            self._delete(op)
        elif op.action == FileAction.CREATE_DIRECTORY.value:
            self._create_directory(op)
        else:
            self._report(f"Error: Unknown file operation '{op.action}' on {op.path}", error=True)

    def _write_file(self, op: FileOperation) -> None:
        path = op.path
        if op.content is None:
            self._report(f"Error: Content missing for {op.action} on {path}", error=True)
            return
        if path.endswith("/"):
            self._report(f"Error: {op.action} target is a directory path: {path}", error=True)
            return
        blocker = self.work.blocking_ancestor(path)
        if blocker:
            self._report(f"Error: Cannot write {path}, file exists at {blocker}", error=True)
            return

        existing = self.work.get(path)
        if existing is not None and existing.is_folder and self.work.descendants(existing.path):
            self._report(f"Error: Cannot write {path}, directory {existing.path} is not empty", error=True)
            return

        self.work.put(ProjectEntry(path=path, type=EntryType.FILE, content=op.content, last_modified=next_timestamp()))
        self.work.materialize_ancestors(path)

        if existing is None:
            self.result.created.append(path)
        else:
            self.result.updated.append(path)

        if op.action == FileAction.CREATE_FILE.value:
            self._report(f"Created file: {path}")
            self.result.active_path = path # Auto-open newly created file
        else:
            self._report(f"Updated file: {path}")

    def _delete(self, op: FileOperation) -> None:
        existing = self.work.pop(op.path)
        if existing is None:
            logger.debug(f"Delete skipped, nothing at {op.path}")
            return
        removed = [existing.path]
        if existing.is_folder:
            for child in self.work.descendants(existing.path):
                self.work.pop(child.path)
                removed.append(child.path)
        self.result.deleted.extend(removed)
        if self.result.active_path in removed:
            self.result.active_path = None
        self._report(f"Deleted {'directory' if existing.is_folder else 'file'}: {existing.path}")

    def _create_directory(self, op: FileOperation) -> None:
        path = normalize_folder_path(op.path)
        existing = self.work.get(path)
        if existing is not None:
            if existing.is_file:
                self._report(f"Error: Cannot create directory, file exists at {existing.path}", error=True)
            else:
                logger.debug(f"Directory already exists: {path}")
            return
        blocker = self.work.blocking_ancestor(path)
        if blocker:
            self._report(f"Error: Cannot create directory {path}, file exists at {blocker}", error=True)
            return
        self.work.materialize_ancestors(path)
        self.work.put(ProjectEntry.folder(path))
        self.result.created.append(path)
        self._report(f"Created directory: {path}")

    def finish(self) -> OperationResult:
        entries = sort_entries(self.work.values())
        active = self.result.active_path
        if active is not None:
            target = self.work.get(active)
            if target is None or not target.is_file:
                active = None
        self.result.entries = entries
        self.result.active_path = active
        return self.result


def apply_operations(
    entries: Iterable[ProjectEntry],
    operations: Sequence[FileOperation],
    active_path: Optional[str] = None,
) -> OperationResult:
    """
    Applies `operations` in order against `entries` and returns the new, canonically
    sorted entry set. Invalid operations are skipped and reported in `messages`;
    they never abort the rest of the batch.
    """
    reducer = _BatchReducer(entries, active_path)
    for op in operations:
        reducer.apply(op)
    result = reducer.finish()
    if operations:
        logger.info(
            f"Applied {len(operations)} file operations: {len(result.created)} created, "
            f"{len(result.updated)} updated, {len(result.deleted)} deleted, {result.errors} rejected."
        )
    return result
