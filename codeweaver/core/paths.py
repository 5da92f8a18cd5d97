# codeweaver/core/paths.py
"""
Pure helpers for project paths.

Project paths are POSIX-style strings relative to the project root with no
leading slash. Folder paths end with '/'. A path's *key* is the path without
its trailing slash; keys are unique across the entry set, so "docs" (file) and
"docs/" (folder) can never coexist.
"""
import re
from typing import Iterable, List, Tuple, TypeVar

_MULTI_SLASH = re.compile(r"/+")

# Extension -> language tag. Anything not listed is "other".
LANGUAGE_BY_EXTENSION = {
    'js': 'javascript', 'ts': 'typescript', 'py': 'python', 'html': 'html', 'htm': 'html',
    'css': 'css', 'json': 'json', 'yaml': 'yaml', 'yml': 'yaml', 'md': 'markdown',
    'java': 'java', 'cs': 'csharp', 'cpp': 'cpp', 'go': 'go', 'rb': 'ruby',
    'php': 'php', 'swift': 'swift', 'kt': 'kotlin', 'rs': 'rust', 'sh': 'shell',
    'sql': 'sql', 'xml': 'xml',
}
UNKNOWN_LANGUAGE = "other"


def normalize_path(path: str) -> str:
    """Strips surrounding whitespace and leading slashes, collapses repeated slashes."""
    cleaned = _MULTI_SLASH.sub("/", path.strip())
    return cleaned.lstrip("/")


def normalize_folder_path(path: str) -> str:
    normalized = normalize_path(path)
    if normalized and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def entry_key(path: str) -> str:
    """Path with the trailing folder slash removed."""
    return path.rstrip("/")


def parent_folders(path: str) -> List[str]:
    """
    Returns every proper ancestor folder of `path`, outermost first.

    parent_folders("a/b/c.txt") -> ["a/", "a/b/"]
    parent_folders("a/b/")      -> ["a/"]
    """
    parts = [part for part in entry_key(path).split("/") if part]
    folders = []
    current = ""
    for part in parts[:-1]:
        current += part + "/"
        folders.append(current)
    return folders


def base_name(path: str) -> str:
    key = entry_key(path)
    return key.rsplit("/", 1)[-1]


def is_under(path: str, folder: str) -> bool:
    """True if `path` is a strict descendant of `folder` (a folder path)."""
    prefix = normalize_folder_path(folder)
    return path != prefix and path.startswith(prefix)


def file_extension(path: str) -> str:
    name = base_name(path)
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def language_for_path(path: str | None) -> str:
    """Maps a file path to its language tag by extension."""
    if not path:
        return UNKNOWN_LANGUAGE
    return LANGUAGE_BY_EXTENSION.get(file_extension(path), UNKNOWN_LANGUAGE)


def canonical_sort_key(path: str, is_folder: bool) -> Tuple[Tuple[int, str], ...]:
    """
    Tree order: compared component by component, folders before files at each
    level, then ordinal by name. Every component except the last is a folder.
    """
    parts = [part for part in entry_key(path).split("/") if part]
    key = [(0, part) for part in parts[:-1]]
    if parts:
        key.append((0 if is_folder else 1, parts[-1]))
    return tuple(key)


T = TypeVar("T")


def sort_entries(entries: Iterable[T]) -> List[T]:
    """Sorts anything with `path` and `is_folder` attributes into canonical order."""
    return sorted(entries, key=lambda e: canonical_sort_key(e.path, e.is_folder))
