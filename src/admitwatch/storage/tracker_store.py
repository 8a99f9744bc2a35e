"""Summary: Tracker document persistence with optimistic concurrency.

Importance: Loads and saves the single JSON tracker file guarded by a version token.
Alternatives: Store tracker state in SQLite or a hosted key-value service.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from admitwatch.config import AppConfig
from admitwatch.errors import StaleVersionError


logger = logging.getLogger(__name__)


class TrackerStore(ABC):
    """Summary: Abstract load/save interface for the tracker document.

    Importance: The token returned by load must be handed back on save.
    Alternatives: Keep the token in process-wide state between calls.
    """

    @abstractmethod
    def load(self, path: str, ref: str) -> tuple[dict[str, Any], str | None]:
        """Summary: Return the document and its current version token."""

    @abstractmethod
    def save(self, path: str, document: dict[str, Any], token: str | None, message: str) -> str:
        """Summary: Write the document and return the new version token.

        Importance: Raises StaleVersionError when the token no longer matches.
        Alternatives: Last-writer-wins without conflict detection.
        """


def serialize_document(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


class JsonFileTrackerStore(TrackerStore):
    """Summary: Keeps the tracker document in a local directory.

    Importance: Supports offline runs and tests with the same concurrency contract.
    Alternatives: Use a git working copy and shell out to git.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    def load(self, path: str, ref: str) -> tuple[dict[str, Any], str | None]:
        """Summary: Read the document; a missing file is an empty document with no token."""

        file_path = self._root / path
        if not file_path.exists():
            return {}, None
        raw = file_path.read_bytes()
        return json.loads(raw.decode("utf-8")), _digest(raw)

    def save(self, path: str, document: dict[str, Any], token: str | None, message: str) -> str:
        file_path = self._root / path
        current = _digest(file_path.read_bytes()) if file_path.exists() else None
        if current != token:
            raise StaleVersionError(f"Tracker file {path} changed since it was loaded")
        raw = serialize_document(document).encode("utf-8")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(raw)
        logger.info("Saved tracker to %s (%s).", file_path, message)
        return _digest(raw)


def _digest(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


class GitHubTrackerStore(TrackerStore):
    """Summary: Keeps the tracker document in a GitHub repository file.

    Importance: Every scan becomes a commit, giving free history of tracker changes.
    Alternatives: Use a gist or an object store bucket.
    """

    def __init__(self, repo: str, token: str, base_url: str) -> None:
        self._repo = repo
        self._token = token
        self._base_url = base_url.rstrip("/")

    def load(self, path: str, ref: str) -> tuple[dict[str, Any], str | None]:
        """Summary: Fetch file contents and blob sha through the contents API."""

        query = urllib.parse.urlencode({"ref": ref})
        payload = self._request("GET", f"{self._contents_url(path)}?{query}")
        content = base64.b64decode(payload.get("content", "")).decode("utf-8")
        return json.loads(content), payload.get("sha")

    def save(self, path: str, document: dict[str, Any], token: str | None, message: str) -> str:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(serialize_document(document).encode("utf-8")).decode("ascii"),
        }
        if token:
            body["sha"] = token
        payload = self._request("PUT", self._contents_url(path), body)
        new_token = (payload.get("content") or {}).get("sha", "")
        logger.info("Committed tracker to %s/%s (%s).", self._repo, path, message)
        return new_token

    def _contents_url(self, path: str) -> str:
        return f"{self._base_url}/repos/{self._repo}/contents/{urllib.parse.quote(path)}"

    def _request(self, method: str, url: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Summary: Send a GitHub API request and parse JSON.

        Importance: Maps stale-sha responses to StaleVersionError.
        Alternatives: Use PyGithub or another SDK.
        """

        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(
            url,
            data=data,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github+json",
                "Content-Type": "application/json",
            },
            method=method,
        )
        try:
            with urllib.request.urlopen(request, timeout=10) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            error_body = exc.read().decode("utf-8")
            if exc.code in (409, 422):
                raise StaleVersionError(f"GitHub rejected tracker update: {error_body or exc.reason}") from exc
            raise RuntimeError(f"GitHub request failed: {error_body or exc.reason}") from exc
        except urllib.error.URLError as exc:
            raise RuntimeError(f"GitHub request failed: {exc.reason}") from exc
        return json.loads(raw)


def build_tracker_store(config: AppConfig) -> TrackerStore:
    """Summary: Construct the configured tracker store."""

    if config.tracker_backend == "github":
        if not (config.github_repo and config.github_token):
            raise ValueError("GitHub repository and GITHUB_TOKEN are required for github backend")
        return GitHubTrackerStore(config.github_repo, config.github_token, config.github_api_url)
    return JsonFileTrackerStore(Path(config.tracker_dir))
