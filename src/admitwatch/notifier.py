"""Summary: Outbound alert delivery.

Importance: Tells the owner when a decision lands and the operator when a run aborts.
Alternatives: Push notifications or chat webhooks.
"""

from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage

from admitwatch.config import AppConfig
from admitwatch.models import Decision, School


logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Summary: Fire-and-forget alert interface."""

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> None:
        """Summary: Deliver one alert; raise on transport failure."""


class LogNotifier(Notifier):
    """Summary: Writes alerts to the log instead of sending them.

    Importance: Safe default for local runs.
    Alternatives: Print to stdout.
    """

    def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info("Alert for %s: %s\n%s", recipient, subject, body)


@dataclass(frozen=True)
class SentAlert:
    recipient: str
    subject: str
    body: str


class RecordingNotifier(Notifier):
    """Summary: Keeps sent alerts in memory.

    Importance: Lets tests and dry demos assert on alert contents.
    Alternatives: Patch smtplib in every test.
    """

    def __init__(self) -> None:
        self.sent: list[SentAlert] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append(SentAlert(recipient=recipient, subject=subject, body=body))


class SmtpNotifier(Notifier):
    """Summary: Sends alerts through an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._user = user
        self._password = password

    def send(self, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=10) as client:
                client.starttls()
                if self._user and self._password:
                    client.login(self._user, self._password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise RuntimeError(f"SMTP delivery failed: {exc}") from exc


def build_decision_alert(decisions: list[Decision], schools: dict[str, School]) -> tuple[str, str]:
    """Summary: Compose one consolidated alert for all decisions in a scan.

    Importance: The owner gets a single message per run, never one per school.
    Alternatives: Send an alert per decision.
    """

    names = [schools[item.school].name if item.school in schools else item.school for item in decisions]
    if len(decisions) == 1:
        subject = f"Admission decision detected: {names[0]}"
    else:
        subject = f"{len(decisions)} admission decisions detected"
    lines = ["New admission decisions were detected:", ""]
    for name, decision in zip(names, decisions):
        lines.append(f"- {name}: {decision.status.upper()} ({decision.date})")
        lines.append(f"  Subject: {decision.subject}")
        lines.append(f"  Confidence: {decision.confidence:.2f}")
    return subject, "\n".join(lines)


def build_notifier(config: AppConfig) -> Notifier:
    if config.notifier == "smtp":
        if not config.smtp_host:
            raise ValueError("ADMITWATCH_SMTP_HOST is required for smtp notifier")
        return SmtpNotifier(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.smtp_sender,
            user=config.smtp_user,
            password=config.smtp_password,
        )
    return LogNotifier()
