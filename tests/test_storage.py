"""Summary: Tests for tracker persistence adapters.

Importance: Ensures version tokens guard against overwriting concurrent changes.
Alternatives: Rely on manual testing against a real repository.
"""

from __future__ import annotations

import base64
import io
import json
import urllib.error
from pathlib import Path
from typing import Any

import pytest

from admitwatch.errors import StaleVersionError
from admitwatch.storage.tracker_store import GitHubTrackerStore, JsonFileTrackerStore


class _FakeResponse:
    def __init__(self, payload: dict[str, Any]) -> None:
        self._raw = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *args: object) -> None:
        return None


def test_file_store_missing_file_is_empty(tmp_path: Path) -> None:
    """Summary: A missing tracker loads as an empty document with no token."""

    document, token = JsonFileTrackerStore(tmp_path).load("tracker.json", "main")
    assert document == {}
    assert token is None


def test_file_store_round_trip_and_token(tmp_path: Path) -> None:
    """Summary: Save returns the token that the next load reports.

    Importance: The token is what makes optimistic concurrency work.
    Alternatives: Compare modification times.
    """

    store = JsonFileTrackerStore(tmp_path)
    token = store.save("tracker.json", {"metadata": {"total_scans": 1}}, None, "first scan")
    document, loaded_token = store.load("tracker.json", "main")
    assert document == {"metadata": {"total_scans": 1}}
    assert loaded_token == token


def test_file_store_rejects_stale_token(tmp_path: Path) -> None:
    store = JsonFileTrackerStore(tmp_path)
    store.save("tracker.json", {"version": 1}, None, "first")
    _, token = store.load("tracker.json", "main")
    (tmp_path / "tracker.json").write_text("{\"version\": 2}", encoding="utf-8")
    with pytest.raises(StaleVersionError):
        store.save("tracker.json", {"version": 3}, token, "second")


def test_github_store_load_decodes_content(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Contents API payloads are decoded and the blob sha becomes the token."""

    requests: list[Any] = []
    content = base64.b64encode(json.dumps({"schools": {}}).encode("utf-8")).decode("ascii")

    def fake_urlopen(request: Any, timeout: int = 10) -> _FakeResponse:
        requests.append(request)
        return _FakeResponse({"content": content, "sha": "abc123"})

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    store = GitHubTrackerStore("owner/tracker", "secret", "https://api.github.com")
    document, token = store.load("data/tracker.json", "main")
    assert document == {"schools": {}}
    assert token == "abc123"
    assert requests[0].full_url == "https://api.github.com/repos/owner/tracker/contents/data/tracker.json?ref=main"
    assert requests[0].get_header("Authorization") == "Bearer secret"


def test_github_store_save_sends_sha(monkeypatch: pytest.MonkeyPatch) -> None:
    sent: list[dict[str, Any]] = []

    def fake_urlopen(request: Any, timeout: int = 10) -> _FakeResponse:
        sent.append(json.loads(request.data.decode("utf-8")))
        return _FakeResponse({"content": {"sha": "def456"}})

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    store = GitHubTrackerStore("owner/tracker", "secret", "https://api.github.com")
    token = store.save("tracker.json", {"schools": {}}, "abc123", "Admissions scan")
    assert token == "def456"
    assert sent[0]["sha"] == "abc123"
    assert sent[0]["message"] == "Admissions scan"
    assert json.loads(base64.b64decode(sent[0]["content"]).decode("utf-8")) == {"schools": {}}


def test_github_store_conflict_is_stale(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(request: Any, timeout: int = 10) -> _FakeResponse:
        raise urllib.error.HTTPError(
            request.full_url, 409, "Conflict", {}, io.BytesIO(b"{\"message\": \"sha mismatch\"}")
        )

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    store = GitHubTrackerStore("owner/tracker", "secret", "https://api.github.com")
    with pytest.raises(StaleVersionError):
        store.save("tracker.json", {}, "old", "Admissions scan")


def test_github_store_other_errors_are_runtime_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(request: Any, timeout: int = 10) -> _FakeResponse:
        raise urllib.error.HTTPError(request.full_url, 404, "Not Found", {}, io.BytesIO(b""))

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    store = GitHubTrackerStore("owner/tracker", "secret", "https://api.github.com")
    with pytest.raises(RuntimeError, match="Not Found"):
        store.load("missing.json", "main")
