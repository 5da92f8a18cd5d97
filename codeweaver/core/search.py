# codeweaver/core/search.py
"""
Cloud search results: AI-found Stack Overflow questions and AI-written
documentation snippets, newest first, capped at MAX_SEARCH_RESULTS.
"""
from typing import Iterable, List, Literal, Optional
from urllib.parse import quote

from loguru import logger
from pydantic import BaseModel

from .models import next_timestamp
from .response_extractor import extract_json, extract_json_list

STACKOVERFLOW_BASE_URL = "https://stackoverflow.com"
MAX_SEARCH_RESULTS = 50


class SearchResult(BaseModel):
    id: str
    title: str
    summary: str
    type: Literal["stackoverflow", "documentation"]
    source: str
    link: Optional[str] = None


def manual_stack_overflow_result(query: str) -> SearchResult:
    """A result that simply links to Stack Overflow's own search page for `query`."""
    return SearchResult(
        id=f"manual-so-{next_timestamp()}",
        title=f'Stack Overflow Search: "{query}"',
        link=f"{STACKOVERFLOW_BASE_URL}/search?q={quote(query, safe='')}",
        summary="Open to search on Stack Overflow.",
        type="stackoverflow",
        source="Stack Overflow (Manual Search)",
    )


def dedupe_results(results: Iterable[SearchResult]) -> List[SearchResult]:
    """Keeps the first result per link (or per id when there is no link)."""
    seen = set()
    unique = []
    for result in results:
        key = result.link or result.id
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def merge_results(new: Iterable[SearchResult], existing: Iterable[SearchResult]) -> List[SearchResult]:
    return (list(new) + list(existing))[:MAX_SEARCH_RESULTS]


def parse_stack_overflow_results(text: str) -> List[SearchResult]:
    """Turns a `[{title, url, brief_summary_of_accepted_answer}]` reply into results. Empty if none."""
    items = extract_json_list(text)
    if items is None:
        return []
    stamp = next_timestamp()
    results = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.debug(f"Skipping Stack Overflow item #{index}: not an object")
            continue
        url = item.get("url")
        if not isinstance(url, str) or not url:
            url = None
        results.append(SearchResult(
            id=url or f"ai-so-{stamp}-{index}",
            title=str(item.get("title") or "AI Suggested Stack Overflow Result"),
            link=url or STACKOVERFLOW_BASE_URL,
            summary=str(item.get("brief_summary_of_accepted_answer") or "View on Stack Overflow for details."),
            type="stackoverflow",
            source="Stack Overflow (via AI)",
        ))
    return dedupe_results(results)


def parse_documentation_result(text: str) -> Optional[SearchResult]:
    """Turns a `{title, summary}` reply into a documentation result, or None."""
    extracted = extract_json(text)
    if extracted is None or not isinstance(extracted.value, dict):
        return None
    title, summary = extracted.value.get("title"), extracted.value.get("summary")
    if not isinstance(title, str) or not isinstance(summary, str) or not title or not summary:
        return None
    return SearchResult(
        id=f"ai-doc-{next_timestamp()}",
        title=title,
        summary=summary,
        type="documentation",
        source="Technical Documentation (via AI)",
    )


_EMPTY_SEARCH = {
    "stackoverflow": ("No specific Stack Overflow links found by AI for this query",
                      "Try rephrasing or a manual search."),
    "documentation": ("No specific documentation snippet generated by AI",
                      "The AI could not generate a documentation snippet for this query. Try rephrasing."),
}


def no_results(kind: Literal["stackoverflow", "documentation"]) -> SearchResult:
    """Placeholder entry recorded when a search came back empty."""
    title, summary = _EMPTY_SEARCH[kind]
    return SearchResult(id=f"no-{kind}-{next_timestamp()}", title=title, summary=summary,
                        type=kind, source="AI Search")
