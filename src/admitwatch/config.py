"""Summary: Application configuration for AdmitWatch.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds adapter settings and scan policy values.

    Importance: Thresholds and limits are policy, so they live here rather than in code.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    tracker_backend: str
    tracker_path: str
    tracker_ref: str
    tracker_dir: str
    github_repo: str
    github_token: str | None
    github_api_url: str
    mailbox_provider: str
    mock_mailbox_fixture: str
    gmail_access_token: str | None
    gmail_api_url: str
    notifier: str
    notify_recipient: str
    operator_recipient: str
    smtp_host: str | None
    smtp_port: int
    smtp_user: str | None
    smtp_password: str | None
    smtp_sender: str
    days_back: int
    max_threads: int
    decision_threshold: float
    email_log_limit: int
    scan_history_limit: int
    schools_path: str | None
    keyword_rules_path: str | None
    api_host: str
    api_port: int
    api_key: str

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            tracker_backend=os.getenv("ADMITWATCH_TRACKER_BACKEND", defaults["tracker_backend"]),
            tracker_path=os.getenv("ADMITWATCH_TRACKER_PATH", defaults["tracker_path"]),
            tracker_ref=os.getenv("ADMITWATCH_TRACKER_REF", defaults["tracker_ref"]),
            tracker_dir=os.getenv("ADMITWATCH_TRACKER_DIR", defaults["tracker_dir"]),
            github_repo=os.getenv("ADMITWATCH_GITHUB_REPO", defaults["github_repo"]),
            github_token=os.getenv("GITHUB_TOKEN") or defaults["github_token"] or None,
            github_api_url=os.getenv("ADMITWATCH_GITHUB_API_URL", defaults["github_api_url"]),
            mailbox_provider=os.getenv("ADMITWATCH_MAILBOX_PROVIDER", defaults["mailbox_provider"]),
            mock_mailbox_fixture=os.getenv(
                "ADMITWATCH_MOCK_MAILBOX_FIXTURE", defaults["mock_mailbox_fixture"]
            ),
            gmail_access_token=os.getenv("ADMITWATCH_GMAIL_ACCESS_TOKEN")
            or defaults["gmail_access_token"]
            or None,
            gmail_api_url=os.getenv("ADMITWATCH_GMAIL_API_URL", defaults["gmail_api_url"]),
            notifier=os.getenv("ADMITWATCH_NOTIFIER", defaults["notifier"]),
            notify_recipient=os.getenv("ADMITWATCH_NOTIFY_RECIPIENT", defaults["notify_recipient"]),
            operator_recipient=os.getenv(
                "ADMITWATCH_OPERATOR_RECIPIENT", defaults["operator_recipient"]
            ),
            smtp_host=os.getenv("ADMITWATCH_SMTP_HOST") or defaults["smtp_host"] or None,
            smtp_port=int(os.getenv("ADMITWATCH_SMTP_PORT", defaults["smtp_port"])),
            smtp_user=os.getenv("ADMITWATCH_SMTP_USER") or defaults["smtp_user"] or None,
            smtp_password=os.getenv("ADMITWATCH_SMTP_PASSWORD") or defaults["smtp_password"] or None,
            smtp_sender=os.getenv("ADMITWATCH_SMTP_SENDER", defaults["smtp_sender"]),
            days_back=int(os.getenv("ADMITWATCH_DAYS_BACK", defaults["days_back"])),
            max_threads=int(os.getenv("ADMITWATCH_MAX_THREADS", defaults["max_threads"])),
            decision_threshold=float(
                os.getenv("ADMITWATCH_DECISION_THRESHOLD", defaults["decision_threshold"])
            ),
            email_log_limit=int(os.getenv("ADMITWATCH_EMAIL_LOG_LIMIT", defaults["email_log_limit"])),
            scan_history_limit=int(
                os.getenv("ADMITWATCH_SCAN_HISTORY_LIMIT", defaults["scan_history_limit"])
            ),
            schools_path=os.getenv("ADMITWATCH_SCHOOLS_PATH") or defaults["schools_path"] or None,
            keyword_rules_path=os.getenv("ADMITWATCH_KEYWORD_RULES_PATH")
            or defaults["keyword_rules_path"]
            or None,
            api_host=os.getenv("ADMITWATCH_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("ADMITWATCH_API_PORT", defaults["api_port"])),
            api_key=os.getenv("ADMITWATCH_API_KEY", defaults["api_key"]),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    defaults = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(defaults, dict):
        raise ValueError(f"Defaults file must hold a JSON object: {path}")
    return {key: "" if value is None else str(value) for key, value in defaults.items()}


def load_dotenv(path: Path) -> None:
    """Summary: Load KEY=value lines from a .env file into the environment.

    Importance: Keeps tokens out of the defaults file; real environment variables win.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        if line.startswith("#") or not sep or not key.strip():
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        os.environ.setdefault(key.strip(), value)
