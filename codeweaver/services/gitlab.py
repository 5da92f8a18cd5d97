# codeweaver/services/gitlab.py
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from loguru import logger

from ..config.schema import GitLabConfig
from ..core.errors import GitLabError
from ..core.project_store import ProjectStore


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason or str(response.status_code)
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or response.status_code)
    return str(response.status_code)


def build_commit_payload(file_path: str, content: str, branch: str, commit_message: str, exists: bool) -> Dict[str, Any]:
    """Single-file commit body for POST /projects/:id/repository/commits."""
    return {
        "branch": branch,
        "commit_message": commit_message,
        "actions": [
            {"action": "update" if exists else "create", "file_path": file_path, "content": content},
        ],
    }


class GitLabClient:
    """Minimal GitLab v4 client for pushing the active file."""

    def __init__(self, instance_url: str, project_path: str, token: str,
                 timeout: float = 15.0, session: Optional[requests.Session] = None,
                 default_branch: str = "main", default_commit_message: str = "[AI] Update code via CodeWeaver"):
        if not instance_url.strip() or not project_path.strip() or not token.strip():
            raise GitLabError("Instance URL, Project Path, and Token are required.")
        self.instance_url = instance_url.strip().rstrip("/")
        self.project_path = project_path.strip()
        self.timeout = timeout
        self.default_branch = default_branch
        self.default_commit_message = default_commit_message
        self.session = session or requests.Session()
        self.session.headers.update({"PRIVATE-TOKEN": token.strip()})
        self.connected = False

    @classmethod
    def from_config(cls, config: GitLabConfig, token: str, session: Optional[requests.Session] = None) -> "GitLabClient":
        return cls(config.instance_url, config.project_path, token, timeout=config.timeout_seconds, session=session,
                   default_branch=config.default_branch, default_commit_message=config.default_commit_message)

    @property
    def project_api_url(self) -> str:
        return f"{self.instance_url}/api/v4/projects/{quote(self.project_path, safe='')}"

    def pipelines_url(self) -> str:
        return f"{self.instance_url}/{self.project_path}/-/pipelines"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GitLabError(f"Request to GitLab failed: {e}") from e

    def connect(self) -> Dict[str, Any]:
        """Checks that the project is reachable with the token."""
        response = self._request("GET", self.project_api_url)
        if not response.ok:
            self.connected = False
            raise GitLabError(f"Failed to connect: {_error_message(response)}", response.status_code)
        self.connected = True
        logger.info(f"Connected to GitLab project {self.instance_url}/{self.project_path}")
        return response.json()

    def file_exists(self, file_path: str, branch: str) -> bool:
        """Probe used to pick create vs update. Anything but a 2xx counts as missing."""
        url = f"{self.project_api_url}/repository/files/{quote(file_path, safe='')}"
        try:
            response = self._request("GET", url, params={"ref": branch})
        except GitLabError as e:
            logger.warning(f"Error checking file existence: {e}")
            return False
        if response.ok:
            return True
        if response.status_code != 404:
            logger.warning(f"File check issue (status {response.status_code}): {_error_message(response)}")
        return False

    def push_file(self, file_path: str, content: str, branch: str, commit_message: str) -> str:
        """Commits one file and returns the commit's web URL."""
        if not self.connected:
            raise GitLabError("Not connected to GitLab.")
        if not file_path.strip() or not branch.strip() or not commit_message.strip():
            raise GitLabError("File path, branch, and commit message are required for push.")
        exists = self.file_exists(file_path.strip(), branch.strip())
        payload = build_commit_payload(file_path.strip(), content, branch.strip(), commit_message.strip(), exists)
        response = self._request("POST", f"{self.project_api_url}/repository/commits", json=payload)
        if not response.ok:
            raise GitLabError(f"Push failed: {_error_message(response)}", response.status_code)
        web_url = response.json().get("web_url", "")
        logger.info(f"Pushed {file_path} to {branch} ({payload['actions'][0]['action']}): {web_url}")
        return web_url


def push_active_file(store: ProjectStore, client: GitLabClient, branch: Optional[str] = None,
                     commit_message: Optional[str] = None, file_path: Optional[str] = None) -> Optional[str]:
    """
    Pushes the store's active file. Branch and message default to the client's.
    Failures become the store status; returns the commit URL or None.
    """
    if store.active_path is None:
        store.set_status("No active file selected to push.")
        return None
    if not store.active_content:
        store.set_status(f"No content in active file {store.active_path} to push.")
        return None
    target = file_path or store.gitlab_target_path
    try:
        url = client.push_file(target, store.active_content, branch or client.default_branch,
                               commit_message or client.default_commit_message)
    except GitLabError as e:
        logger.error(f"GitLab push error: {e}")
        store.set_status(f"GitLab push failed: {e}")
        return None
    store.set_status(f"Successfully pushed {store.active_path} to GitLab!")
    return url
