# tests/core/test_search.py
from codeweaver.core.search import (
    MAX_SEARCH_RESULTS, STACKOVERFLOW_BASE_URL, SearchResult, dedupe_results, manual_stack_overflow_result,
    merge_results, no_results, parse_documentation_result, parse_stack_overflow_results,
)


def result(id, link=None):
    return SearchResult(id=id, title=id, summary="s", type="stackoverflow", source="test", link=link)


def test_parse_stack_overflow_results():
    text = ('Found these:\n[{"title": "Q1", "url": "https://stackoverflow.com/questions/1/a", '
            '"brief_summary_of_accepted_answer": "Use X"}, {"title": "Q1 again", '
            '"url": "https://stackoverflow.com/questions/1/a"}, "junk"]')

    found = parse_stack_overflow_results(text)

    assert len(found) == 1
    assert found[0].title == "Q1"
    assert found[0].link == "https://stackoverflow.com/questions/1/a"
    assert found[0].summary == "Use X"


def test_stack_overflow_item_without_url_links_to_site():
    found = parse_stack_overflow_results('[{"title": "Q"}]')
    assert found[0].link == STACKOVERFLOW_BASE_URL
    assert found[0].summary == "View on Stack Overflow for details."


def test_parse_stack_overflow_rejects_non_array():
    assert parse_stack_overflow_results('{"title": "Q"}') == []
    assert parse_stack_overflow_results("no idea") == []


def test_parse_documentation_result():
    doc = parse_documentation_result('```json\n{"title": "fetch()", "summary": "Returns a Promise."}\n```')
    assert doc.type == "documentation"
    assert doc.title == "fetch()"
    assert parse_documentation_result('{"title": "only a title"}') is None


def test_dedupe_by_link_then_id():
    unique = dedupe_results([result("a", "https://x"), result("b", "https://x"), result("c"), result("c")])
    assert [r.id for r in unique] == ["a", "c"]


def test_merge_puts_new_first_and_caps():
    existing = [result(f"old-{i}") for i in range(MAX_SEARCH_RESULTS)]
    merged = merge_results([result("new")], existing)
    assert len(merged) == MAX_SEARCH_RESULTS
    assert merged[0].id == "new"
    assert merged[-1].id == f"old-{MAX_SEARCH_RESULTS - 2}"


def test_manual_and_empty_results():
    manual = manual_stack_overflow_result("async await")
    assert manual.link == "https://stackoverflow.com/search?q=async%20await"
    assert no_results("documentation").source == "AI Search"
