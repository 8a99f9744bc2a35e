"""Summary: Per-school mailbox scan.

Importance: Classifies new messages for one school and picks at most one decision.
Alternatives: Scan the whole mailbox once and bucket messages by sender.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from admitwatch.classifier import KeywordClassifier
from admitwatch.errors import SchoolScanFailure
from admitwatch.extractor import ActionItemExtractor
from admitwatch.mailbox import MailboxProvider, build_search_query
from admitwatch.models import (
    DECISION_CATEGORIES,
    Decision,
    EmailRecord,
    MailMessage,
    School,
    SchoolScanResult,
)


logger = logging.getLogger(__name__)

SUBJECT_LIMIT = 100


@dataclass(frozen=True)
class SchoolScanner:
    """Summary: Runs search, classification, and extraction for a single school.

    Importance: Stateless with respect to the tracker document; dedup relies on seen ids only.
    Alternatives: Deduplicate on message content hashes.
    """

    mailbox: MailboxProvider
    classifier: KeywordClassifier
    extractor: ActionItemExtractor
    days_back: int = 30
    max_threads: int = 20
    decision_threshold: float = 0.5

    def scan(self, school: School, seen_ids: set[str], now: datetime) -> SchoolScanResult:
        """Summary: Scan one school's recent mail.

        Importance: A broken message is dropped; a failed search fails the school.
        Alternatives: Abort on the first unreadable message.
        """

        query = build_search_query(school.domain, now, self.days_back)
        try:
            threads = self.mailbox.search(query, self.max_threads)
        except Exception as exc:
            raise SchoolScanFailure(school.key, str(exc)) from exc

        handled = set(seen_ids)
        records: list[EmailRecord] = []
        action_items: list[str] = []
        best: Decision | None = None
        for thread in threads:
            for message in thread.messages:
                if message.id in handled:
                    continue
                try:
                    record, items = self._process(school, message)
                except Exception:
                    logger.warning("Dropping unreadable message %s for %s.", message.id, school.key, exc_info=True)
                    continue
                handled.add(message.id)
                records.append(record)
                for item in items:
                    if item not in action_items:
                        action_items.append(item)
                if record.category in DECISION_CATEGORIES and record.confidence >= self.decision_threshold:
                    if best is None or record.confidence > best.confidence:
                        best = Decision(
                            school=school.key,
                            category=record.category,
                            confidence=record.confidence,
                            date=record.date,
                            subject=message.subject,
                        )
        logger.info(
            "Scanned %s: %s new messages, decision=%s.",
            school.key,
            len(records),
            best.category if best else None,
        )
        return SchoolScanResult(
            school=school.key,
            records=tuple(records),
            decision=best,
            action_items=tuple(action_items),
        )

    def _process(self, school: School, message: MailMessage) -> tuple[EmailRecord, list[str]]:
        classification = self.classifier.classify(message.subject, message.body)
        items = self.extractor.extract(message.subject, message.body)
        record = EmailRecord(
            id=message.id,
            school=school.key,
            date=message.date.date().isoformat(),
            subject=(message.subject or "")[:SUBJECT_LIMIT],
            category=classification.category,
            confidence=classification.confidence,
            sender=message.sender,
        )
        return record, items
