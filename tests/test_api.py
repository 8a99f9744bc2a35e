"""Summary: API integration tests.

Importance: Validates FastAPI endpoints against the scan pipeline.
Alternatives: Use manual curl testing only.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient

from admitwatch.api import create_app
from admitwatch.app import build_services
from admitwatch.config import AppConfig
from admitwatch.mailbox import MockMailbox
from admitwatch.notifier import RecordingNotifier
from admitwatch.storage.tracker_store import JsonFileTrackerStore, TrackerStore


def _build_config(tmp_path: Path, api_key: str = "") -> AppConfig:
    """Summary: Build an AppConfig for API tests.

    Importance: Ensures tests use isolated storage and a local mailbox.
    Alternatives: Load AppConfig from environment variables.
    """

    return AppConfig(
        tracker_backend="file",
        tracker_path="tracker.json",
        tracker_ref="main",
        tracker_dir=str(tmp_path),
        github_repo="",
        github_token=None,
        github_api_url="https://api.github.com",
        mailbox_provider="mock",
        mock_mailbox_fixture=str(tmp_path / "threads.json"),
        gmail_access_token=None,
        gmail_api_url="https://gmail.googleapis.com/gmail/v1",
        notifier="log",
        notify_recipient="owner@example.com",
        operator_recipient="ops@example.com",
        smtp_host=None,
        smtp_port=587,
        smtp_user=None,
        smtp_password=None,
        smtp_sender="admitwatch@localhost",
        days_back=3650,
        max_threads=20,
        decision_threshold=0.5,
        email_log_limit=100,
        scan_history_limit=50,
        schools_path=None,
        keyword_rules_path=None,
        api_host="127.0.0.1",
        api_port=8000,
        api_key=api_key,
    )


def _write_fixture(tmp_path: Path) -> None:
    (tmp_path / "threads.json").write_text(
        json.dumps(
            [
                {
                    "id": "t1",
                    "messages": [
                        {
                            "id": "ucb-1",
                            "subject": "Congratulations! You have been admitted to UC Berkeley",
                            "body": "We are pleased to offer you admission.",
                            "date": "2026-10-10T09:00:00",
                            "sender": "admissions@berkeley.edu",
                        }
                    ],
                }
            ]
        ),
        encoding="utf-8",
    )


def _client(tmp_path: Path, api_key: str = "", store: TrackerStore | None = None) -> tuple[TestClient, RecordingNotifier]:
    _write_fixture(tmp_path)
    config = _build_config(tmp_path, api_key=api_key)
    notifier = RecordingNotifier()
    services = build_services(
        config,
        mailbox=MockMailbox(tmp_path / "threads.json"),
        store=store or JsonFileTrackerStore(tmp_path),
        notifier=notifier,
    )
    return TestClient(create_app(config, services)), notifier


def test_api_scan_and_status(tmp_path: Path) -> None:
    """Summary: Verify a scan via HTTP updates the tracker status.

    Importance: Confirms the trigger surface wires into the whole pipeline.
    Alternatives: Validate only the CLI workflow.
    """

    client, notifier = _client(tmp_path)
    response = client.post("/scan")
    assert response.status_code == 200
    body = response.json()
    assert body["new_email_count"] == 1
    assert body["decision_count"] == 1
    assert body["saved"] is True
    assert body["decisions"][0]["status"] == "accepted"
    assert len(notifier.sent) == 1

    status = client.get("/status")
    assert status.status_code == 200
    rows = {row["key"]: row for row in status.json()["schools"]}
    assert rows["ucb"]["status"] == "accepted"
    assert rows["ucla"]["status"] == "unknown"
    assert status.json()["metadata"]["total_scans"] == 1


def test_api_dry_run_does_not_persist(tmp_path: Path) -> None:
    client, notifier = _client(tmp_path)
    response = client.post("/scan/dry-run")
    assert response.status_code == 200
    assert response.json()["new_email_count"] == 1
    assert response.json()["decision_count"] == 1
    assert not (tmp_path / "tracker.json").exists()
    assert notifier.sent == []


def test_api_classify(tmp_path: Path) -> None:
    client, _ = _client(tmp_path)
    response = client.post(
        "/classify",
        json={
            "subject": "Final Reminder: Submit TAU by March 15",
            "body": "Your Transfer Academic Update is due by March 15.",
        },
    )
    assert response.status_code == 200
    assert response.json()["category"] == "action_required"
    assert any("March 15" in item for item in response.json()["action_items"])


def test_api_requires_key_when_configured(tmp_path: Path) -> None:
    client, _ = _client(tmp_path, api_key="secret")
    assert client.post("/scan").status_code == 401
    assert client.post("/scan", headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/health").json() == {"status": "ok"}


def test_api_load_failure_is_503(tmp_path: Path) -> None:
    class UnreachableStore(TrackerStore):
        def load(self, path: str, ref: str) -> tuple[dict[str, Any], str | None]:
            raise RuntimeError("repository unreachable")

        def save(self, path: str, document: dict[str, Any], token: str | None, message: str) -> str:
            raise AssertionError("save must not be called")

    client, notifier = _client(tmp_path, store=UnreachableStore())
    response = client.post("/scan")
    assert response.status_code == 503
    assert notifier.sent[0].recipient == "ops@example.com"


def test_api_lists_schools(tmp_path: Path) -> None:
    client, _ = _client(tmp_path)
    response = client.get("/schools")
    assert response.status_code == 200
    assert response.json()[0]["key"] == "ucb"
