# tests/core/test_assistant.py
import asyncio

import pytest

from codeweaver.config.schema import AppConfig
from codeweaver.core.analysis import Suggestion
from codeweaver.core.assistant import AssistantSession
from codeweaver.core.models import ProjectEntry
from codeweaver.core.project_store import ProjectStore

CREATE_OPS = '```json\n{"fileOperations": [{"action": "createFile", "path": "/src/new.js", "content": "export {}"}]}\n```'


class FakeAI:
    """Replies from queues; an Exception in a queue is raised instead."""

    def __init__(self, chat_replies=(), generate_replies=()):
        self.chat_replies = list(chat_replies)
        self.generate_replies = list(generate_replies)
        self.sessions = []
        self.prompts = []

    @staticmethod
    def _next(queue):
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def chat(self, session, message):
        self.sessions.append(session)
        return self._next(self.chat_replies)

    async def generate(self, prompt):
        self.prompts.append(prompt)
        return self._next(self.generate_replies)


class GatedAI:
    """Each chat call waits until the test releases it."""

    def __init__(self, replies):
        self.replies = replies
        self.gates = {}

    async def chat(self, session, message):
        gate = self.gates[message] = asyncio.Event()
        await gate.wait()
        return self.replies[message]

    async def generate(self, prompt):
        raise AssertionError("not used")


@pytest.fixture(autouse=True)
def no_tokenizer(mocker):
    mocker.patch("codeweaver.core.prompt_engine.truncate_to_tokens", side_effect=lambda text, n: text[:n])


@pytest.fixture
def store():
    return ProjectStore([ProjectEntry.file("app.js", "let a = 1;")], active_path="app.js")


def make_assistant(store, ai):
    return AssistantSession(store, ai, config=AppConfig())


def test_chat_file_operations_are_applied(store):
    ai = FakeAI(chat_replies=[CREATE_OPS])
    assistant = make_assistant(store, ai)

    reply = asyncio.run(assistant.send_chat_message("add a module"))

    assert store.get("src/new.js").content == "export {}"
    assert store.active_path == "src/new.js"
    assert reply.file_operations[0].path == "src/new.js"
    assert [m.sender for m in assistant.history] == ["user", "assistant"]
    assert store.status == "AI performed file operations."


def test_plain_reply_leaves_project_alone(store):
    assistant = make_assistant(store, FakeAI(chat_replies=["Use a const."]))
    before = store.entries

    reply = asyncio.run(assistant.send_chat_message("tips?"))

    assert reply.text == "Use a const."
    assert store.entries == before


def test_direct_edit_mode_writes_pending_edit(store):
    assistant = make_assistant(store, FakeAI(chat_replies=["```js\nconst a = 1;\n```"]))
    assistant.direct_edit_mode = True

    asyncio.run(assistant.send_chat_message("use const"))

    assert store.active_content == "const a = 1;"
    assert store.pending_original("app.js") == "let a = 1;"


def test_scaffold_never_direct_edits(store):
    assistant = make_assistant(store, FakeAI(chat_replies=["I can't do that."]))
    assistant.direct_edit_mode = True

    reply = asyncio.run(assistant.scaffold("make a backend"))

    assert reply.text == "I can't do that."
    assert store.active_content == "let a = 1;"
    assert assistant.history[0].text == "Scaffold request: make a backend"


def test_chat_error_is_reported(store):
    assistant = make_assistant(store, FakeAI(chat_replies=[RuntimeError("quota exceeded")]))
    before = store.entries

    reply = asyncio.run(assistant.send_chat_message("hello"))

    assert reply.text == "Error: quota exceeded"
    assert store.entries == before
    assert store.status == "Chat error."


def test_session_is_reused_until_reset(store):
    ai = FakeAI(chat_replies=["one", "two", "three"])
    assistant = make_assistant(store, ai)

    asyncio.run(assistant.send_chat_message("1"))
    asyncio.run(assistant.send_chat_message("2"))
    assistant.new_session()
    asyncio.run(assistant.send_chat_message("3"))

    assert ai.sessions[0] is ai.sessions[1]
    assert ai.sessions[2] is not ai.sessions[0]
    assert "app.js" in ai.sessions[0].system_instruction
    assert "fileOperations" in ai.sessions[0].system_instruction


def test_stale_chat_response_is_dropped(store):
    ai = GatedAI({
        "first": '{"fileOperations": [{"action": "createFile", "path": "stale.txt", "content": "old"}]}',
        "second": "fresh answer",
    })
    assistant = make_assistant(store, ai)

    async def scenario():
        first = asyncio.create_task(assistant.send_chat_message("first"))
        await asyncio.sleep(0)
        second = asyncio.create_task(assistant.send_chat_message("second"))
        await asyncio.sleep(0)
        ai.gates["first"].set()
        stale = await first
        ai.gates["second"].set()
        fresh = await second
        return stale, fresh

    stale, fresh = asyncio.run(scenario())

    assert stale is None
    assert fresh.text == "fresh answer"
    assert store.get("stale.txt") is None


def test_analyze_active_file(store):
    payload = ('{"language": "javascript", "breakdown": "Declares a.", '
               '"suggestions": [{"description": "Use const", "fix_prompt": "Replace let with const"}]}')
    assistant = make_assistant(store, FakeAI(generate_replies=[payload]))

    analysis = asyncio.run(assistant.analyze_active_file())

    assert analysis.language == "javascript"
    assert analysis.suggestions[0].fix_prompt == "Replace let with const"
    assert store.status == "Analysis complete. Detected language: javascript."


def test_analyze_with_invalid_json(store):
    assistant = make_assistant(store, FakeAI(generate_replies=["Looks fine to me!"]))

    analysis = asyncio.run(assistant.analyze_active_file())

    assert analysis.breakdown == "Error: AI returned invalid JSON for analysis."
    assert analysis.language == "javascript"


def test_analyze_without_active_file():
    assistant = make_assistant(ProjectStore(), FakeAI())
    assert asyncio.run(assistant.analyze_active_file()) is None


def test_apply_suggestion_creates_pending_edit(store):
    assistant = make_assistant(store, FakeAI(generate_replies=["```\nconst a = 1;\n```"]))

    applied = asyncio.run(assistant.apply_suggestion(Suggestion(description="Use const", fix_prompt="Replace let")))

    assert applied
    assert store.active_content == "const a = 1;"
    assert store.discard_edit("app.js")
    assert store.active_content == "let a = 1;"


def test_apply_suggestion_failure_keeps_content(store):
    assistant = make_assistant(store, FakeAI(generate_replies=[RuntimeError("offline")]))

    applied = asyncio.run(assistant.apply_suggestion(Suggestion(description="d", fix_prompt="f")))

    assert not applied
    assert store.active_content == "let a = 1;"
    assert not store.has_pending_edit("app.js")


def test_generate_summary_updates_context(store):
    ai = FakeAI(generate_replies=["# Summary\nA tiny JS app."])
    assistant = make_assistant(store, ai)

    asyncio.run(assistant.generate_summary())

    assert assistant.project_context == "# Summary\nA tiny JS app."
    assert "File: app.js" in ai.prompts[0]


def test_generate_ci_config_opens_file(store):
    assistant = make_assistant(store, FakeAI(generate_replies=["```yaml\nstages:\n  - test\n```"]))

    assert asyncio.run(assistant.generate_ci_config())
    assert store.active_path == ".gitlab-ci.yml"
    assert store.active_content == "stages:\n  - test"
    assert store.language == "yaml"


def test_search_stack_overflow_records_results(store):
    ai = FakeAI(generate_replies=['[{"title": "Why let?", "url": "https://stackoverflow.com/questions/7/why"}]'])
    assistant = make_assistant(store, ai)

    found = asyncio.run(assistant.search_stack_overflow())

    assert [r.link for r in found] == ["https://stackoverflow.com/questions/7/why"]
    assert assistant.search_results == found
    assert "Query: issues in the current code" in ai.prompts[0]
    assert store.status == "AI found 1 potential Stack Overflow solutions."


def test_search_docs_without_usable_answer(store):
    assistant = make_assistant(store, FakeAI(generate_replies=["Sorry, no docs."]))

    result = asyncio.run(assistant.search_docs("closures"))

    assert result.title == "No specific documentation snippet generated by AI"
    assert assistant.search_results == [result]


def test_search_failure_leaves_results(store):
    assistant = make_assistant(store, FakeAI(generate_replies=[RuntimeError("offline")]))
    manual = assistant.manual_stack_overflow_search("hoisting")

    assert asyncio.run(assistant.search_docs("x")) is None
    assert assistant.search_results == [manual]
    assert store.status == "Documentation search failed: offline"
