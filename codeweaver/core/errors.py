# codeweaver/core/errors.py


class CodeWeaverError(Exception):
    """Base class for all codeweaver errors."""


class StructureConflictError(CodeWeaverError):
    """Raised when structure text cannot be merged without orphaning entries."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class GitLabError(CodeWeaverError):
    """Raised when a call to the GitLab API fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
