# codeweaver/core/response_extractor.py
"""
Best-effort recovery of JSON from free-form AI text.

The payload is located by taking the first '{' through the last '}' (or the first
'[' through the last ']'), not by a balanced scan. Prose containing a stray
closing brace after the real payload defeats it; callers only rely on
`extract_json` returning a value or None.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from loguru import logger

from .models import FileOperation

# Matches text that is entirely one fenced block. DOTALL so the body can span lines;
# the non-greedy body still reaches the final fence because of the '$' anchor.
_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_OPENING_FENCE_RE = re.compile(r"^```(\w*)")

FILE_OPERATIONS_KEY = "fileOperations"


@dataclass
class ExtractedJson:
    value: Any
    file_operations: Optional[List[FileOperation]] = None # Set when value carries a fileOperations array

    @property
    def has_file_operations(self) -> bool:
        return self.file_operations is not None


def strip_fence(text: str) -> str:
    """Returns the body of a single wrapping fenced block, or the trimmed text."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match and match.group(2):
        return match.group(2).strip()
    return stripped


def _candidate(text: str) -> Optional[str]:
    first_brace, last_brace = text.find("{"), text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return text[first_brace:last_brace + 1]
    first_bracket, last_bracket = text.find("["), text.rfind("]")
    if first_bracket != -1 and last_bracket > first_bracket:
        return text[first_bracket:last_bracket + 1]
    return None


def _to_operations(raw_ops: List[Any]) -> List[FileOperation]:
    operations = []
    for index, item in enumerate(raw_ops):
        if not isinstance(item, dict):
            logger.warning(f"Ignoring file operation #{index}: expected an object, got {type(item).__name__}")
            continue
        operations.append(FileOperation.from_dict(item))
    return operations


_INVALID = object()


def _loads(candidate: str) -> Any:
    """json.loads that returns _INVALID instead of raising."""
    try:
        return json.loads(candidate)
    except (ValueError, RecursionError) as e:
        # ValueError also covers JSONDecodeError and the int-digit limit
        logger.debug(f"Extracted text is not valid JSON: {e}")
        return _INVALID


def _wrap(value: Any) -> ExtractedJson:
    if isinstance(value, dict) and isinstance(value.get(FILE_OPERATIONS_KEY), list):
        return ExtractedJson(value=value, file_operations=_to_operations(value[FILE_OPERATIONS_KEY]))
    return ExtractedJson(value=value)


def extract_json(text: Optional[str]) -> Optional[ExtractedJson]:
    """Finds and parses the outermost JSON object or array in `text`. Never raises."""
    if not text:
        return None
    candidate = _candidate(strip_fence(text))
    if candidate is None:
        return None
    value = _loads(candidate)
    if value is _INVALID:
        return None
    return _wrap(value)


def extract_file_operations(text: Optional[str]) -> Optional[List[FileOperation]]:
    extracted = extract_json(text)
    if extracted is None:
        return None
    return extracted.file_operations


def extract_json_list(text: Optional[str]) -> Optional[List[Any]]:
    """
    Recovers a JSON array from `text`. Tries the whole (unfenced) text first, then
    the first '[' through the last ']', so arrays of objects survive surrounding prose.
    """
    if not text:
        return None
    body = strip_fence(text)
    value = _loads(body)
    if value is _INVALID:
        first_bracket, last_bracket = body.find("["), body.rfind("]")
        if first_bracket == -1 or last_bracket <= first_bracket:
            return None
        value = _loads(body[first_bracket:last_bracket + 1])
    return value if isinstance(value, list) else None


def load_operation_batch(text: Optional[str]) -> Optional[List[FileOperation]]:
    """
    Reads a FileOperation batch: a bare JSON array of operations, a
    {"fileOperations": [...]} object, or AI reply text wrapping either.
    """
    items = extract_json_list(text)
    if items is not None:
        return _to_operations(items)
    return extract_file_operations(text)


def cleanup_code(text: Optional[str]) -> str:
    """Drops a leading ```lang line and a trailing ``` line from an AI code reply."""
    if not text:
        return ""
    stripped = text.strip()
    # Double-escaped replies: split on literal "\n" when there are no real newlines
    lines = stripped.split("\n") if "\n" in stripped else stripped.split("\\n")
    if lines and _OPENING_FENCE_RE.match(lines[0]):
        lines.pop(0)
    if lines and lines[-1].strip() == "```":
        lines.pop()
    return "\n".join(lines)
