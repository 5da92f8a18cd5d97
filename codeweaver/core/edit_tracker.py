# codeweaver/core/edit_tracker.py
import difflib
from typing import Dict, List, Optional

from loguru import logger


class EditSnapshotTracker:
    """Remembers the content a file had before an AI edit was written into it."""

    def __init__(self):
        self._originals: Dict[str, str] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._originals

    def __len__(self) -> int:
        return len(self._originals)

    def record(self, path: str, content: str) -> bool:
        """Stores `content` as the original for `path`. Returns False if one is already pending."""
        if path in self._originals:
            logger.debug(f"Snapshot for {path} already pending, keeping the first one.")
            return False
        self._originals[path] = content
        logger.debug(f"Recorded pre-edit snapshot for {path} ({len(content)} chars).")
        return True

    def original(self, path: str) -> Optional[str]:
        return self._originals.get(path)

    def release(self, path: str) -> Optional[str]:
        """Removes and returns the snapshot for `path`."""
        return self._originals.pop(path, None)

    def forget(self, paths) -> None:
        for path in paths:
            if self._originals.pop(path, None) is not None:
                logger.debug(f"Dropped pending edit for removed path {path}")

    def paths(self) -> List[str]:
        return sorted(self._originals)

    def diff(self, path: str, current: str) -> List[str]:
        """Unified diff from the snapshot to `current`; empty when nothing is pending."""
        original = self._originals.get(path)
        if original is None:
            return []
        return list(difflib.unified_diff(
            original.splitlines(keepends=True),
            current.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        ))
