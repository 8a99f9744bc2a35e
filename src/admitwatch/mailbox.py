"""Summary: Mailbox search interfaces and implementations.

Importance: Encapsulates read-only retrieval of admissions threads.
Alternatives: Rely solely on provider SDKs with vendor lock-in.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from email.utils import parseaddr
from pathlib import Path
from typing import Any, Iterator

from admitwatch.config import AppConfig
from admitwatch.models import MailMessage, MailThread


logger = logging.getLogger(__name__)


class MailboxProvider(ABC):
    """Summary: Abstract interface for mailbox search.

    Importance: Lets the scanner run against Gmail or local fixtures alike.
    Alternatives: Use provider-specific classes directly in the scanner.
    """

    @abstractmethod
    def search(self, query: str, max_results: int) -> list[MailThread]:
        """Summary: Return threads matching a `from:<domain> after:<yyyy/mm/dd>` query.

        Importance: Single retrieval entry point for every school scan.
        Alternatives: Fetch everything and filter locally.
        """


def build_search_query(domain: str, now: datetime, days_back: int) -> str:
    """Summary: Build the per-school mailbox query.

    Importance: Bounds the search to one domain and a recent window.
    Alternatives: Search by label or folder instead of sender domain.
    """

    since = now - timedelta(days=days_back)
    return f"from:{domain} after:{since.strftime('%Y/%m/%d')}"


def parse_search_query(query: str) -> tuple[str | None, datetime | None]:
    """Summary: Extract the sender domain and lower date bound from a query."""

    domain_match = re.search(r"from:(\S+)", query)
    after_match = re.search(r"after:(\d{4}/\d{2}/\d{2})", query)
    domain = domain_match.group(1).lower() if domain_match else None
    after = datetime.strptime(after_match.group(1), "%Y/%m/%d") if after_match else None
    return domain, after


class MockMailbox(MailboxProvider):
    """Summary: Serves threads from a local JSON fixture.

    Importance: Supports offline testing, demos, and dry runs.
    Alternatives: Use .eml exports or generate synthetic messages.
    """

    def __init__(self, fixture_path: Path) -> None:
        self._fixture_path = fixture_path

    def search(self, query: str, max_results: int) -> list[MailThread]:
        """Summary: Filter fixture threads by sender domain and date.

        Importance: Mirrors the server-side filtering of a real mailbox.
        Alternatives: Return every fixture thread regardless of query.
        """

        data = json.loads(self._fixture_path.read_text(encoding="utf-8"))
        domain, after = parse_search_query(query)
        threads: list[MailThread] = []
        for item in data:
            messages = tuple(
                message
                for message in (_parse_fixture_message(raw) for raw in item.get("messages", []))
                if _matches(message, domain, after)
            )
            if messages:
                threads.append(MailThread(id=item.get("id", messages[0].id), messages=messages))
        return threads[:max_results]


def _parse_fixture_message(item: dict[str, Any]) -> MailMessage:
    return MailMessage(
        id=item["id"],
        subject=item.get("subject", ""),
        body=item.get("body", ""),
        date=datetime.fromisoformat(item["date"]),
        sender=item.get("sender", ""),
    )


def _matches(message: MailMessage, domain: str | None, after: datetime | None) -> bool:
    """Summary: Apply query filters to a message.

    Importance: Subdomains of the school domain count as matches.
    Alternatives: Require an exact domain match.
    """

    if domain:
        address = parseaddr(message.sender)[1].lower()
        sender_domain = address.rsplit("@", 1)[-1]
        if sender_domain != domain and not sender_domain.endswith(f".{domain}"):
            return False
    if after and message.date.replace(tzinfo=None) < after:
        return False
    return True


class GmailMailbox(MailboxProvider):
    """Summary: Searches threads via the Gmail API using an OAuth access token.

    Importance: Provides read-only retrieval from the real mailbox.
    Alternatives: Use IMAP search or the Google client library.
    """

    def __init__(self, access_token: str, base_url: str) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")

    def search(self, query: str, max_results: int) -> list[MailThread]:
        """Summary: List matching threads and fetch each in full.

        Importance: A thread that fails to load or a message that fails to parse
        is skipped, not fatal.
        Alternatives: Abort the whole search on the first failing thread.
        """

        params = urllib.parse.urlencode({"q": query, "maxResults": max_results})
        payload = _gmail_api_get(f"{self._base_url}/users/me/threads?{params}", self._access_token)
        threads: list[MailThread] = []
        for item in payload.get("threads", []) or []:
            thread_id = item.get("id")
            if not thread_id:
                continue
            detail_url = f"{self._base_url}/users/me/threads/{thread_id}?format=full"
            try:
                thread_payload = _gmail_api_get(detail_url, self._access_token)
            except RuntimeError as exc:
                logger.warning("Skipping thread %s: %s", thread_id, exc)
                continue
            messages: list[MailMessage] = []
            for raw in thread_payload.get("messages", []) or []:
                try:
                    parsed = _parse_gmail_message(raw)
                except (ValueError, TypeError, AttributeError) as exc:
                    message_id = raw.get("id") if isinstance(raw, dict) else None
                    logger.warning("Skipping message %s in thread %s: %s", message_id, thread_id, exc)
                    continue
                if parsed is not None:
                    messages.append(parsed)
            threads.append(MailThread(id=thread_id, messages=tuple(messages)))
        return threads


def _gmail_api_get(url: str, access_token: str) -> dict[str, Any]:
    """Summary: GET one Gmail API resource as JSON.

    Importance: Every transport or decoding failure surfaces as RuntimeError,
    which the search loop treats as a skippable thread.
    Alternatives: Use a third-party HTTP client or SDK.
    """

    request = urllib.request.Request(url, headers={"Authorization": f"Bearer {access_token}"})
    try:
        with urllib.request.urlopen(request, timeout=10) as response:
            return json.loads(response.read().decode("utf-8"))
    except urllib.error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") or exc.reason
        raise RuntimeError(f"Gmail API {exc.code} for {url}: {detail}") from exc
    except urllib.error.URLError as exc:
        raise RuntimeError(f"Gmail API unreachable: {exc.reason}") from exc
    except ValueError as exc:
        raise RuntimeError(f"Gmail API returned invalid JSON for {url}: {exc}") from exc


def _parse_gmail_message(message: dict[str, Any]) -> MailMessage | None:
    """Summary: Parse a Gmail message payload into a MailMessage.

    Importance: Normalizes Gmail payloads into the scanner's message model.
    Alternatives: Store raw Gmail payloads and parse later.

    Raises ValueError or TypeError for a malformed date or body encoding.
    """

    message_id = message.get("id")
    if not message_id:
        return None
    payload = message.get("payload") or {}
    headers = _parse_gmail_headers(payload.get("headers", []))
    internal_date = message.get("internalDate")
    timestamp = datetime.fromtimestamp(int(internal_date) / 1000) if internal_date else datetime.now()
    body = _extract_gmail_body(payload) or message.get("snippet", "")
    return MailMessage(
        id=message_id,
        subject=headers.get("Subject", ""),
        body=body,
        date=timestamp,
        sender=headers.get("From", ""),
    )


def _parse_gmail_headers(headers: list[dict[str, Any]]) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for header in headers:
        name = header.get("name")
        value = header.get("value")
        if name and value:
            normalized[name] = value
    return normalized


def _extract_gmail_body(payload: dict[str, Any]) -> str:
    """Summary: Extract a plain text body from a Gmail payload.

    Importance: Keyword scoring works on readable text, not MIME structure.
    Alternatives: Score the Gmail snippet only.
    """

    text_parts: list[str] = []
    fallback_parts: list[str] = []
    for part in _walk_gmail_parts(payload):
        data = (part.get("body") or {}).get("data")
        if not data:
            continue
        decoded = _decode_base64url(data)
        if part.get("mimeType") == "text/plain":
            text_parts.append(decoded)
        else:
            fallback_parts.append(_strip_html(decoded))
    chosen = text_parts or fallback_parts
    return "\n".join(item.strip() for item in chosen if item.strip()).strip()


def _walk_gmail_parts(payload: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Depth-first over the MIME tree, container parts included."""

    pending = [payload]
    while pending:
        part = pending.pop()
        yield part
        pending.extend(reversed(part.get("parts") or []))


def _decode_base64url(data: str) -> str:
    """Decode a Gmail body part; raises ValueError when the data is not base64url."""

    try:
        raw = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
    except binascii.Error as exc:
        raise ValueError(f"Malformed base64url body part: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def _strip_html(text: str) -> str:
    return re.sub(r"\s+", " ", re.sub(r"<[^>]+>", " ", text))


def build_mailbox(config: AppConfig) -> MailboxProvider:
    """Summary: Construct the configured mailbox provider.

    Importance: Keeps provider selection in one place for CLI and API.
    Alternatives: Use dependency injection frameworks.
    """

    if config.mailbox_provider == "gmail":
        if not config.gmail_access_token:
            raise ValueError("ADMITWATCH_GMAIL_ACCESS_TOKEN is required for gmail mailbox")
        return GmailMailbox(config.gmail_access_token, config.gmail_api_url)
    return MockMailbox(Path(config.mock_mailbox_fixture))
