# tests/core/test_prompt_engine.py
import pytest

from codeweaver.config.schema import AppConfig
from codeweaver.core.models import ProjectEntry
from codeweaver.core.prompt_engine import FILE_OPERATIONS_FORMAT, PromptEngine


@pytest.fixture
def truncate(mocker):
    return mocker.patch("codeweaver.core.prompt_engine.truncate_to_tokens", side_effect=lambda text, n: text[:n])


def test_excerpt_bounded_by_context_budget(truncate):
    engine = PromptEngine(AppConfig(active_file_excerpt_tokens=256, max_context_tokens=10))
    assert engine.excerpt("x" * 100) == "x" * 10
    truncate.assert_called_once_with("x" * 100, 10)


def test_system_instruction_mentions_file_and_format(truncate):
    engine = PromptEngine(AppConfig())
    text = engine.system_instruction("A site", "src/app.js", "javascript", "let a;")
    assert "Current active file: src/app.js" in text
    assert FILE_OPERATIONS_FORMAT in text


def test_summary_prompt_bounds_file_text(truncate):
    engine = PromptEngine(AppConfig(max_context_tokens=60, summary_excerpt_chars=5))
    prompt = engine.summary_prompt([ProjectEntry.file("a.txt", "abcdefgh")], "a.txt", "other", "z" * 100)
    assert "File: a.txt\nContent (first 5 chars):\nabcde" in prompt
    assert "abcdef" not in prompt
    assert "z" * 60 in prompt
    assert "z" * 61 not in prompt


def test_search_prompts_cut_code(truncate):
    engine = PromptEngine(AppConfig())
    code = "y" * 600
    assert ("y" * 500 + "\n```") in engine.stack_overflow_prompt("q", "ctx", code)
    assert "y" * 501 not in engine.documentation_prompt("q", "ctx", code)
