# codeweaver/config/schema.py
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

from .defaults import DEFAULT_MODEL, DEFAULT_PROJECT_FILES, INITIAL_PROJECT_CONTEXT
from ..core.paths import normalize_path


class ProjectFileConfig(BaseModel):
    path: str
    type: Literal["file", "folder"] = "file"
    content: str = ""

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        return normalize_path(v)


class GitLabConfig(BaseModel):
    instance_url: str = "https://gitlab.com"
    project_path: str = "" # namespace/project
    default_branch: str = "main"
    default_commit_message: str = "[AI] Update code via CodeWeaver"
    default_file_path: str = "src/app/main.py" # Push target when no file is active
    timeout_seconds: float = 15.0


class AppConfig(BaseModel):
    model: str = DEFAULT_MODEL
    project_context: str = INITIAL_PROJECT_CONTEXT
    default_project_files: List[ProjectFileConfig] = Field(
        default_factory=lambda: [ProjectFileConfig(**f) for f in DEFAULT_PROJECT_FILES]
    )
    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    max_context_tokens: int = 8192 # Upper bound for any file text placed in a prompt
    active_file_excerpt_tokens: int = 256 # Budget for the active file excerpt in the chat system prompt
    summary_excerpt_chars: int = 200 # Per-file excerpt used when summarizing the project
    log_level: str = "INFO"
