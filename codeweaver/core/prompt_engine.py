# codeweaver/core/prompt_engine.py
from typing import Iterable, Optional

from loguru import logger

from ..config.loader import get_config
from .models import ProjectEntry
from .token_counter import truncate_to_tokens

FILE_OPERATIONS_FORMAT = (
    'IMPORTANT: If you need to suggest creating, updating, or deleting files, or creating directories, '
    'respond ONLY with a JSON object in the following format: { "fileOperations": [ { "action": '
    '"createFile" | "updateFile" | "deleteFile", "path": "path/to/file.ext", "content": "file content '
    '(omit for deleteFile)" }, { "action": "createDirectory", "path": "path/to/directory/" } ] }. '
    'Ensure paths are relative to the project root. For any other chat, respond normally.'
)

ANALYSIS_FORMAT = (
    '{"language": "detected_language_string_lowercase", "breakdown": "string (brief summary of code '
    'purpose and structure)", "suggestions": [{"description": "string (actionable improvement idea)", '
    '"fix_prompt": "string (a prompt for an AI to apply this fix)"}]}'
)

SEARCH_CODE_CHARS = 500
DEFAULT_STACK_OVERFLOW_QUERY = "issues in the current code"
DEFAULT_DOCUMENTATION_QUERY = "help with current code functionality or issues"


class PromptEngine:
    """Builds every prompt the assistant sends to the model."""

    def __init__(self, config=None):
        self.config = config or get_config()
        logger.debug("PromptEngine initialized.")

    def excerpt(self, code: str) -> str:
        """Start of the active file, cut to the configured token budget."""
        budget = min(self.config.active_file_excerpt_tokens, self.config.max_context_tokens)
        return truncate_to_tokens(code, budget)

    def system_instruction(self, project_context: str, active_path: Optional[str], language: str, code: str) -> str:
        return (
            f"You are CodeWeaver AI, a helpful coding assistant. Project context: {project_context}. "
            f"Current active file: {active_path or 'none'}. Current code language: {language}. "
            f"User's current active file code (excerpt):\n{self.excerpt(code)}\n\n{FILE_OPERATIONS_FORMAT}"
        )

    def bounded(self, text: str) -> str:
        """Cuts `text` to the max_context_tokens budget."""
        return truncate_to_tokens(text, self.config.max_context_tokens)

    def analysis_prompt(self, code: str) -> str:
        return (
            "Analyze this code. Determine its primary programming language. "
            f"Respond with a minified JSON: {ANALYSIS_FORMAT}. Code: ```\n{self.bounded(code)}\n```"
        )

    def suggestion_prompt(self, description: str, fix_prompt: str, code: str) -> str:
        return (
            "You are a code modification engine. The user wants to apply the following suggestion: "
            f'"{description}".\nThe instruction to achieve this is: "{fix_prompt}".\n'
            "IMPORTANT: You must ONLY output the complete, modified code. Do not add any explanation, "
            f"commentary, or markdown code fences.\nOriginal Code:\n---\n{code}\n---"
        )

    def summary_prompt(self, entries: Iterable[ProjectEntry], active_path: Optional[str], language: str, code: str) -> str:
        limit = self.config.summary_excerpt_chars
        overview = "\n".join(
            f"File: {e.path}\nContent (first {limit} chars):\n{e.content[:limit]}\n---\n" for e in entries
        )
        overview = self.bounded(overview)
        return (
            "Analyze this project structure and code snippets. Create a concise summary of its purpose, "
            "tech stack, and structure for a project README. Output only the summary in markdown format.\n"
            f"Project Files Overview:\n{overview}\n\nMain active file ({active_path}):\n```{language}\n{self.bounded(code)}\n```"
        )

    def ci_config_prompt(self, project_context: str, entries: Iterable[ProjectEntry],
                         active_path: Optional[str], language: str, code: str) -> str:
        paths = [e.path for e in entries]
        overview = "Project files include: " + ", ".join(paths) + ". "
        if any("package.json" in p for p in paths):
            overview += "Seems to be a Node.js/JavaScript project. "
        if any("requirements.txt" in p or p.endswith(".py") for p in paths):
            overview += "Seems to be a Python project. "
        return (
            f"Based on the provided project context, current active file language ({language}), and project "
            "files overview, create a complete and effective .gitlab-ci.yml file.\n"
            "It should include stages for build, test, and deploy (with a placeholder deploy job).\n"
            "Make smart assumptions for a standard project of this type.\n"
            "IMPORTANT: Output ONLY the raw YAML content, with no explanations or markdown fences.\n"
            f"Project Context:\n{project_context}\n\nProject Files Overview:\n{overview}\n\n"
            f"Currently active file ({active_path or 'none'}) language: {language}\n"
            f"Code (excerpt of active file):\n```{language}\n{self.excerpt(code)}\n```"
        )

    def stack_overflow_prompt(self, query: str, project_context: str, code: str) -> str:
        return (
            "Based on the following query, project context, and code, find relevant Stack Overflow questions "
            "and provide their direct URLs.\nPrioritize questions with accepted answers.\n"
            f'If the query is "{DEFAULT_STACK_OVERFLOW_QUERY}", analyze the provided code for potential problems.\n'
            'Format your response as a minified JSON array: [{"title": "Question Title", "url": '
            '"https://stackoverflow.com/questions/ID/slug", "brief_summary_of_accepted_answer": '
            '"A short summary of the solution if available"}].\n'
            f"Query: {query}\nProject Context: {project_context}\n"
            f"Code (first {SEARCH_CODE_CHARS} chars):\n```\n{code[:SEARCH_CODE_CHARS]}\n```"
        )

    def documentation_prompt(self, query: str, project_context: str, code: str) -> str:
        return (
            "You are an expert technical assistant with access to a large body of technical documentation "
            "(API docs, guides, and tutorials for many languages and frameworks).\n"
            "Based on the user's query, current code, and project context, provide a concise and helpful answer "
            "as if retrieved from that documentation. Focus on explanations, code examples, or troubleshooting "
            "steps. If the query is generic, analyze the code and pick an area to explain.\n"
            'Format your response as a minified JSON object: {"title": "Relevant Documentation Snippet Title", '
            '"summary": "Detailed explanation, code example, or steps. Use markdown for code blocks if relevant."}.\n\n'
            f"User Query: {query}\nProject Context: {project_context}\n"
            f"Current Code (first {SEARCH_CODE_CHARS} chars):\n```\n{code[:SEARCH_CODE_CHARS]}\n```"
        )
