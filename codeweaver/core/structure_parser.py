# codeweaver/core/structure_parser.py
"""
Turns an indented text tree into project entries.

    src/
      components/
        Button.tsx
      main.ts
    README.md

Each indentation level is two columns. Lines ending in '/' are folders, every
other non-blank line is a file. The result is merged into the existing entries:
files that already have content keep it.
"""
from dataclasses import replace
from typing import Iterable, List

from loguru import logger

from .errors import StructureConflictError
from .file_ops import WorkingSet
from .models import ProjectEntry, next_timestamp
from .paths import normalize_path, parent_folders, sort_entries

INDENT_WIDTH = 2
PLACEHOLDER_TEMPLATE = "// {name} - created from structure"


def placeholder_content(name: str) -> str:
    return PLACEHOLDER_TEMPLATE.format(name=name)


def split_structure_lines(text: str) -> List[str]:
    """Splits on newlines, or on literal '\\n' sequences when pasted text has none."""
    separator = "\n" if "\n" in text else "\\n"
    return [line.rstrip() for line in text.split(separator)]


def _indent_level(line: str) -> int:
    # Tabs and spaces both count as one column; mixed indentation just yields odd depths
    leading = len(line) - len(line.lstrip())
    return leading // INDENT_WIDTH


def _add_folder(work: WorkingSet, path: str) -> None:
    existing = work.get(path)
    if existing is None:
        work.put(ProjectEntry.folder(path))
    elif existing.is_file:
        logger.warning(f"Structure lists folder {path} but a file exists there, keeping the file.")


def _add_file(work: WorkingSet, path: str, name: str) -> None:
    existing = work.get(path)
    if existing is None:
        work.put(ProjectEntry.file(path, placeholder_content(name)))
    elif existing.is_folder:
        if work.descendants(existing.path):
            raise StructureConflictError(path, "Cannot replace a non-empty directory with a file")
        logger.info(f"Promoting empty folder {existing.path} to file {path}")
        work.put(ProjectEntry.file(path, placeholder_content(name)))
    elif not existing.content:
        work.put(replace(existing, content=placeholder_content(name), last_modified=next_timestamp()))
    # A file with real content is left untouched


def _reconcile_ancestors(work: WorkingSet) -> None:
    for entry in work.values():
        for folder in parent_folders(entry.path):
            existing = work.get(folder)
            if existing is None:
                work.put(ProjectEntry.folder(folder))
            elif existing.is_file:
                raise StructureConflictError(entry.path, f"Cannot nest an entry under file {existing.path}")


def parse_structure(text: str, existing_entries: Iterable[ProjectEntry] = ()) -> List[ProjectEntry]:
    """
    Parses structure text and merges it into `existing_entries`.
    Returns a new, canonically sorted list; the input entries are not modified.
    Raises StructureConflictError only when the merge would leave an entry nested under a file.
    """
    work = WorkingSet(existing_entries)
    stack: List[str] = []
    seen = 0

    for line in split_structure_lines(text):
        name = line.strip()
        if not name:
            continue
        del stack[_indent_level(line):]
        path = normalize_path("".join(stack) + name)
        if not path:
            continue
        seen += 1
        if name.endswith("/"):
            _add_folder(work, path)
            stack.append(name)
        else:
            _add_file(work, path, name)

    _reconcile_ancestors(work)
    entries = sort_entries(work.values())
    logger.debug(f"Parsed {seen} structure lines into {len(entries)} entries.")
    return entries


def export_structure(entries: Iterable[ProjectEntry]) -> str:
    """Renders entries as structure text; parsing the result yields the same tree."""
    lines = []
    for entry in sort_entries(entries):
        depth = len(parent_folders(entry.path))
        name = entry.path.rstrip("/").rsplit("/", 1)[-1]
        suffix = "/" if entry.is_folder else ""
        lines.append(" " * (INDENT_WIDTH * depth) + name + suffix)
    return "\n".join(lines)
