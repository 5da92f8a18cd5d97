# codeweaver/core/assistant.py
"""
AI round-trips against a ProjectStore.

The model itself is external: anything with async `generate(prompt)` and
`chat(session, message)` methods will do. Each kind of request has its own
generation counter; a reply is applied only if no newer request of the same
kind was started while it was in flight.
"""
import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from loguru import logger

from ..config.loader import get_config
from .analysis import AnalysisData, Suggestion, parse_analysis
from .models import ChatMessage, FileAction, FileOperation
from .project_store import ProjectStore
from .prompt_engine import DEFAULT_DOCUMENTATION_QUERY, DEFAULT_STACK_OVERFLOW_QUERY, PromptEngine
from .response_extractor import cleanup_code, extract_file_operations
from .search import (
    SearchResult, manual_stack_overflow_result, merge_results, no_results,
    parse_documentation_result, parse_stack_overflow_results,
)

CI_CONFIG_PATH = ".gitlab-ci.yml"

_session_ids = itertools.count(1)


@dataclass
class ChatSession:
    """Handle for one conversation with the model. The client decides what to keep in it."""
    system_instruction: str
    model: str
    id: int = field(default_factory=lambda: next(_session_ids))


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...

    async def chat(self, session: ChatSession, message: str) -> str: ...


class AssistantSession:
    def __init__(self, store: ProjectStore, ai: TextGenerator, config=None, prompts: Optional[PromptEngine] = None):
        self.store = store
        self.ai = ai
        self.config = config or get_config()
        self.prompts = prompts or PromptEngine(self.config)
        self.history: List[ChatMessage] = []
        self.direct_edit_mode = False
        self.project_context = self.config.project_context
        self.analysis: Optional[AnalysisData] = None
        self.search_results: List[SearchResult] = []
        self._chat_session: Optional[ChatSession] = None
        self._generations: Dict[str, int] = {}

    # --- Generation tokens ---

    def _begin(self, channel: str) -> int:
        token = self._generations.get(channel, 0) + 1
        self._generations[channel] = token
        return token

    def _is_current(self, channel: str, token: int) -> bool:
        if self._generations.get(channel) == token:
            return True
        logger.info(f"Dropping stale {channel} response (token {token}, current {self._generations.get(channel)}).")
        return False

    # --- Chat ---

    @property
    def chat_session(self) -> Optional[ChatSession]:
        return self._chat_session

    def new_session(self) -> None:
        """Forgets the conversation; replies still in flight are dropped."""
        self._chat_session = None
        self._begin("chat")

    def _ensure_session(self) -> ChatSession:
        if self._chat_session is None:
            instruction = self.prompts.system_instruction(
                self.project_context, self.store.active_path, self.store.language, self.store.active_content
            )
            self._chat_session = ChatSession(system_instruction=instruction, model=self.config.model)
            logger.debug(f"Started chat session {self._chat_session.id}")
        return self._chat_session

    def _reply(self, text: str, operations: Optional[List[FileOperation]] = None) -> ChatMessage:
        message = ChatMessage(sender="assistant", text=text, file_operations=operations or [])
        self.history.append(message)
        return message

    async def _converse(self, message: str, allow_direct_edit: bool) -> Optional[ChatMessage]:
        token = self._begin("chat")
        session = self._ensure_session()
        # The edit lands on the file the user was looking at when they asked
        edit_target = self.store.active_path if allow_direct_edit and self.direct_edit_mode else None
        try:
            text = await self.ai.chat(session, message)
        except Exception as e:
            if not self._is_current("chat", token):
                return None
            logger.exception(f"Chat request failed: {e}")
            self.store.set_status("Chat error.")
            return self._reply(f"Error: {e}")

        if not self._is_current("chat", token):
            return None

        operations = extract_file_operations(text)
        if operations is not None:
            result = self.store.apply_operations(operations)
            self.store.set_status(
                "AI performed file operations." if result.ok
                else f"AI file operations finished with {result.errors} error(s): {result.messages[-1]}"
            )
            return self._reply("I've processed the file operations. Check the project files.", operations)

        if edit_target is not None and self.store.begin_direct_edit(edit_target, cleanup_code(text)):
            return self._reply("I've modified the code in the editor. Please review, then Apply or Discard.")

        self.store.set_status("Response received.")
        return self._reply(text)

    async def send_chat_message(self, message: str) -> Optional[ChatMessage]:
        """Sends a chat message. Returns the assistant's reply, or None if it was superseded."""
        self.history.append(ChatMessage(sender="user", text=message))
        self.store.set_status("Sending message to the assistant...")
        return await self._converse(message, allow_direct_edit=True)

    async def scaffold(self, prompt: str) -> Optional[ChatMessage]:
        """Asks for file operations; a plain-text answer is recorded but never edits a file."""
        if not prompt.strip():
            self.store.set_status("Scaffold prompt is empty.")
            return None
        self.history.append(ChatMessage(sender="user", text=f"Scaffold request: {prompt}"))
        return await self._converse(prompt, allow_direct_edit=False)

    # --- Single-shot generations ---

    async def _generate(self, channel: str, prompt: str) -> Optional[str]:
        """Runs one generate() call. None when it failed or was superseded."""
        token = self._begin(channel)
        try:
            text = await self.ai.generate(prompt)
        except Exception as e:
            if self._is_current(channel, token):
                logger.exception(f"{channel} request failed: {e}")
                self.store.set_status(f"{channel.capitalize()} failed: {e}")
            return None
        if not self._is_current(channel, token):
            return None
        return text

    async def analyze_active_file(self) -> Optional[AnalysisData]:
        if self.store.active_path is None:
            self.store.set_status("No active file to analyze.")
            return None
        token = self._begin("analysis")
        fallback_language = self.store.language
        try:
            text = await self.ai.generate(self.prompts.analysis_prompt(self.store.active_content))
        except Exception as e:
            if not self._is_current("analysis", token):
                return None
            logger.exception(f"Error analyzing code: {e}")
            self.analysis = AnalysisData(language=fallback_language, breakdown=f"Error: {e}")
            self.store.set_status("Analysis failed.")
            return self.analysis
        if not self._is_current("analysis", token):
            return None

        parsed = parse_analysis(text)
        if parsed is None:
            self.analysis = AnalysisData(language=fallback_language,
                                         breakdown="Error: AI returned invalid JSON for analysis.")
            self.store.set_status("Analysis failed.")
            return self.analysis
        self.analysis = parsed
        self.store.set_status(f"Analysis complete. Detected language: {parsed.language or 'ambiguous'}.")
        return parsed

    async def apply_suggestion(self, suggestion: Suggestion) -> bool:
        """Has the model rewrite the active file per `suggestion`, as a pending direct edit."""
        target = self.store.active_path
        if target is None:
            self.store.set_status("No active file to apply the suggestion to.")
            return False
        prompt = self.prompts.suggestion_prompt(suggestion.description, suggestion.fix_prompt, self.store.active_content)
        text = await self._generate("suggestion", prompt)
        if text is None:
            return False
        return self.store.begin_direct_edit(target, cleanup_code(text))

    async def generate_summary(self) -> Optional[str]:
        """Replaces the project context with a model-written summary of the project."""
        prompt = self.prompts.summary_prompt(
            self.store.files, self.store.active_path, self.store.language, self.store.active_content
        )
        text = await self._generate("summary", prompt)
        if text is None:
            return None
        self.project_context = text
        self.store.set_status("Project summary generated and updated.")
        return text

    async def generate_ci_config(self) -> bool:
        """Writes a model-generated .gitlab-ci.yml and opens it."""
        prompt = self.prompts.ci_config_prompt(
            self.project_context, self.store.entries, self.store.active_path,
            self.store.language, self.store.active_content
        )
        text = await self._generate("ci", prompt)
        if text is None:
            return False
        result = self.store.apply_operations([FileOperation(FileAction.UPDATE_FILE, CI_CONFIG_PATH, cleanup_code(text))])
        if not result.ok:
            return False
        self.store.select_file(CI_CONFIG_PATH)
        self.store.set_status(f"{CI_CONFIG_PATH} generated/updated! Review in editor.")
        return True

    # --- Cloud search ---

    def manual_stack_overflow_search(self, query: str) -> Optional[SearchResult]:
        if not query.strip():
            return None
        result = manual_stack_overflow_result(query.strip())
        self.search_results = merge_results([result], self.search_results)
        self.store.set_status(f"Searching Stack Overflow for: {query.strip()}...")
        return result

    async def search_stack_overflow(self, query: str = "") -> Optional[List[SearchResult]]:
        """Asks the model for Stack Overflow questions. None when the request failed or was superseded."""
        prompt = self.prompts.stack_overflow_prompt(
            query.strip() or DEFAULT_STACK_OVERFLOW_QUERY, self.project_context, self.store.active_content
        )
        text = await self._generate("stack overflow search", prompt)
        if text is None:
            return None
        found = parse_stack_overflow_results(text)
        if found:
            self.store.set_status(f"AI found {len(found)} potential Stack Overflow solutions.")
        else:
            found = [no_results("stackoverflow")]
            self.store.set_status("AI could not find specific Stack Overflow links for this query.")
        self.search_results = merge_results(found, self.search_results)
        return found

    async def search_docs(self, query: str = "") -> Optional[SearchResult]:
        """Asks the model for a documentation-style answer. None when the request failed or was superseded."""
        prompt = self.prompts.documentation_prompt(
            query.strip() or DEFAULT_DOCUMENTATION_QUERY, self.project_context, self.store.active_content
        )
        text = await self._generate("documentation search", prompt)
        if text is None:
            return None
        result = parse_documentation_result(text)
        if result is not None:
            self.store.set_status("AI provided a documentation snippet.")
        else:
            result = no_results("documentation")
            self.store.set_status("AI could not generate a documentation snippet for this query.")
        self.search_results = merge_results([result], self.search_results)
        return result
