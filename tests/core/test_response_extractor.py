# tests/core/test_response_extractor.py
from codeweaver.core.models import FileOperation
from codeweaver.core.response_extractor import (
    cleanup_code, extract_file_operations, extract_json, extract_json_list, load_operation_batch, strip_fence,
)


def test_file_operations_in_prose_with_fence():
    text = 'Sure! ```json\n{"fileOperations":[{"action":"deleteFile","path":"/old.txt"}]}\n```'
    extracted = extract_json(text)

    assert extracted is not None
    assert extracted.has_file_operations
    assert extracted.file_operations == [FileOperation("deleteFile", "old.txt")]


def test_whole_text_fenced_array():
    extracted = extract_json("```json\n[1, 2, 3]\n```")
    assert extracted.value == [1, 2, 3]
    assert not extracted.has_file_operations


def test_plain_object_is_untagged():
    extracted = extract_json('Here you go: {"language": "python", "breakdown": "x"} hope it helps')
    assert extracted.value == {"language": "python", "breakdown": "x"}
    assert extracted.file_operations is None


def test_no_json_returns_none():
    assert extract_json("Just a friendly answer without any payload.") is None
    assert extract_json("") is None
    assert extract_json(None) is None


def test_invalid_json_returns_none():
    assert extract_json("{not: valid json}") is None


def test_stray_closing_brace_defeats_heuristic():
    assert extract_json('Result {"a": 1} and a stray } here') is None


def test_object_span_preferred_over_array():
    extracted = extract_json('[{"a": 1}]')
    assert extracted.value == {"a": 1}


def test_file_operations_must_be_a_list():
    extracted = extract_json('{"fileOperations": "createFile"}')
    assert extracted is not None
    assert not extracted.has_file_operations


def test_non_object_operations_are_dropped():
    text = '{"fileOperations": [42, {"action": "createFile", "path": "a.txt", "content": "x"}]}'
    assert extract_file_operations(text) == [FileOperation("createFile", "a.txt", "x")]


def test_extract_file_operations_none_for_plain_json():
    assert extract_file_operations('{"answer": 42}') is None


def test_strip_fence_only_when_whole_text_is_fenced():
    assert strip_fence("```\nbody\n```") == "body"
    assert strip_fence("intro ```\nbody\n```") == "intro ```\nbody\n```"


def test_cleanup_code_removes_fences():
    assert cleanup_code("```python\nprint(1)\nprint(2)\n```") == "print(1)\nprint(2)"
    assert cleanup_code("  x = 1  ") == "x = 1"
    assert cleanup_code("") == ""


def test_oversized_integer_returns_none():
    assert extract_json('{"n": ' + "1" * 5000 + '}') is None
    assert extract_file_operations('{"fileOperations": [], "n": ' + "9" * 5000 + '}') is None


def test_null_path_is_kept_empty():
    ops = extract_file_operations('{"fileOperations":[{"action":"createFile","path":null,"content":"x"}]}')
    assert ops == [FileOperation("createFile", "", "x")]


def test_cleanup_code_with_literal_newlines():
    assert cleanup_code("```js\\nconst a = 1;\\nconst b = 2;\\n```") == "const a = 1;\nconst b = 2;"


def test_load_operation_batch_from_bare_array():
    text = '[{"action": "createDirectory", "path": "lib/"}, {"action": "updateFile", "path": "a.txt"}]'
    assert load_operation_batch(text) == [
        FileOperation("createDirectory", "lib/"),
        FileOperation("updateFile", "a.txt"),
    ]


def test_load_operation_batch_from_single_element_array():
    assert load_operation_batch('```json\n[{"action": "deleteFile", "path": "x.txt"}]\n```') == [
        FileOperation("deleteFile", "x.txt"),
    ]


def test_load_operation_batch_from_reply_text():
    text = 'Here:\n{"fileOperations": [{"action": "deleteFile", "path": "old.txt"}]}\nDone.'
    assert load_operation_batch(text) == [FileOperation("deleteFile", "old.txt")]


def test_load_operation_batch_without_operations():
    assert load_operation_batch('{"language": "python"}') is None
    assert load_operation_batch("nothing here") is None


def test_extract_json_list_from_prose():
    text = 'Results:\n[{"title": "A"}, {"title": "B"}]\nThat is all.'
    assert extract_json_list(text) == [{"title": "A"}, {"title": "B"}]
    assert extract_json('[{"title": "A"}, {"title": "B"}] trailing') is None
    assert extract_json_list('{"title": "A"}') is None
