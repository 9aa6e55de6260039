"""
Client for the Git-hosted content repository (GitHub Contents API).

Uploaded images and their thumbnails are committed to a separate content
repository and served from ``raw.githubusercontent.com``.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol
from uuid import uuid4

import requests

from cms.exceptions import GitHubError
from shared.types import RepoFile

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
GITHUB_API_URL = "https://api.github.com"
RAW_BASE_URL = "https://raw.githubusercontent.com"


class ContentRepo(Protocol):
    """Operations the CMS performs against the content repository."""

    def get_file(self, path: str) -> Optional[RepoFile]:
        ...

    def put_file(self, path: str, content: bytes, message: str) -> str:
        ...

    def delete_file(self, path: str, message: str) -> bool:
        ...

    def list_dir(self, path: str) -> list[RepoFile]:
        ...

    def raw_url(self, path: str) -> str:
        ...


def raw_base_url(owner: str, repo: str, branch: str) -> str:
    return f"{RAW_BASE_URL}/{owner}/{repo}/{branch}/"


@dataclass
class InMemoryContentRepo:
    """Test double recording commits in a dict keyed by path."""

    owner: str = "zscorenotes"
    repo: str = "zscore-content"
    branch: str = "main"
    files: dict = field(default_factory=dict)
    commits: list = field(default_factory=list)

    def get_file(self, path: str) -> Optional[RepoFile]:
        entry = self.files.get(path)
        if entry is None:
            return None
        sha, content = entry
        return RepoFile(path=path, sha=sha, content=content, size=len(content))

    def put_file(self, path: str, content: bytes, message: str) -> str:
        sha = uuid4().hex
        self.files[path] = (sha, content)
        self.commits.append(("put", path, message))
        return sha

    def delete_file(self, path: str, message: str) -> bool:
        if path not in self.files:
            return False
        del self.files[path]
        self.commits.append(("delete", path, message))
        return True

    def list_dir(self, path: str) -> list[RepoFile]:
        prefix = path.rstrip("/") + "/"
        return [
            RepoFile(path=p, sha=sha, size=len(content), download_url=self.raw_url(p))
            for p, (sha, content) in sorted(self.files.items())
            if p.startswith(prefix) and "/" not in p[len(prefix):]
        ]

    def raw_url(self, path: str) -> str:
        return raw_base_url(self.owner, self.repo, self.branch) + path


@dataclass
class GitHubContentRepo:
    """GitHub Contents API client authenticated with a personal access token."""

    owner: str
    repo: str
    token: Optional[str]
    branch: str = "main"
    api_url: str = GITHUB_API_URL

    def __post_init__(self):
        self._session = requests.Session()

    def _headers(self) -> dict:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{path.lstrip('/')}"

    def _require_token(self) -> None:
        if not self.token:
            raise GitHubError("GitHub token required for writing content")

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._contents_url(path)
        try:
            return self._session.request(
                method, url, headers=self._headers(), timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.RequestException as e:
            raise GitHubError(f"GitHub request failed for {path}: {e}") from e

    @staticmethod
    def _error(response: requests.Response, path: str) -> GitHubError:
        try:
            message = response.json().get("message", "")
        except ValueError:
            message = response.text
        logger.error(
            "GitHub API error: status=%s path=%s message=%s",
            response.status_code,
            path,
            message,
        )
        return GitHubError(f"GitHub API error: {response.status_code} - {message}")

    def get_file(self, path: str) -> Optional[RepoFile]:
        response = self._request("GET", path, params={"ref": self.branch})
        if response.status_code == 404:
            return None
        if not response.ok:
            raise self._error(response, path)

        data = response.json()
        content = base64.b64decode(data.get("content") or "")
        return RepoFile(
            path=data.get("path", path),
            sha=data["sha"],
            content=content,
            size=data.get("size", len(content)),
            download_url=data.get("download_url"),
        )

    def put_file(self, path: str, content: bytes, message: str) -> str:
        """
        Creates or overwrites ``path`` on the configured branch.

        Returns:
            str: The blob sha of the committed file.
        """
        self._require_token()
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        existing = self.get_file(path)
        if existing:
            payload["sha"] = existing.sha

        response = self._request("PUT", path, json=payload)
        if not response.ok:
            raise self._error(response, path)
        logger.info("Committed %s to %s/%s", path, self.owner, self.repo)
        return response.json()["content"]["sha"]

    def delete_file(self, path: str, message: str) -> bool:
        self._require_token()
        existing = self.get_file(path)
        if existing is None:
            logger.warning("File not found for deletion: %s", path)
            return False

        response = self._request(
            "DELETE",
            path,
            json={"message": message, "sha": existing.sha, "branch": self.branch},
        )
        if not response.ok:
            raise self._error(response, path)
        logger.info("Deleted %s from %s/%s", path, self.owner, self.repo)
        return True

    def list_dir(self, path: str) -> list[RepoFile]:
        response = self._request("GET", path, params={"ref": self.branch})
        if response.status_code == 404:
            return []
        if not response.ok:
            raise self._error(response, path)
        return [
            RepoFile(
                path=entry["path"],
                sha=entry["sha"],
                size=entry.get("size", 0),
                download_url=entry.get("download_url"),
            )
            for entry in response.json()
            if entry.get("type") == "file"
        ]

    def raw_url(self, path: str) -> str:
        return raw_base_url(self.owner, self.repo, self.branch) + path
