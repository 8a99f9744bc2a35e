"""Summary: Tests for the per-school scanner.

Importance: Validates dedup, decision selection, and message-level failure isolation.
Alternatives: Exercise scanning only through the orchestrator.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from admitwatch.catalog import default_keyword_rules
from admitwatch.classifier import KeywordClassifier
from admitwatch.errors import SchoolScanFailure
from admitwatch.extractor import ActionItemExtractor
from admitwatch.mailbox import MailboxProvider
from admitwatch.models import KeywordRule, MailMessage, MailThread, School
from admitwatch.scanner import SchoolScanner

NOW = datetime(2026, 10, 18, 12, 0, 0)
SCHOOL = School(key="ucb", domain="berkeley.edu", name="UC Berkeley", short_name="Berkeley", school_type="UC")


class FakeMailbox(MailboxProvider):
    def __init__(self, threads: list[MailThread] | None = None, error: Exception | None = None) -> None:
        self.threads = threads or []
        self.error = error
        self.queries: list[tuple[str, int]] = []

    def search(self, query: str, max_results: int) -> list[MailThread]:
        self.queries.append((query, max_results))
        if self.error:
            raise self.error
        return self.threads


def _message(message_id: str, subject: str, body: str = "", date: object = None) -> MailMessage:
    return MailMessage(
        id=message_id,
        subject=subject,
        body=body,
        date=date or datetime(2026, 10, 15, 9, 0, 0),
        sender="admissions@berkeley.edu",
    )


def _scanner(mailbox: MailboxProvider, classifier: KeywordClassifier | None = None) -> SchoolScanner:
    return SchoolScanner(
        mailbox=mailbox,
        classifier=classifier or KeywordClassifier(rules=tuple(default_keyword_rules())),
        extractor=ActionItemExtractor(),
        days_back=30,
        max_threads=20,
    )


def test_scan_builds_query_and_records() -> None:
    """Summary: New messages become email records and decisions.

    Importance: Confirms the core per-school flow.
    Alternatives: Check only the returned decision.
    """

    mailbox = FakeMailbox(
        [
            MailThread(
                id="t1",
                messages=(
                    _message(
                        "m1",
                        "Congratulations! You have been admitted to UC Berkeley",
                        "We are pleased to offer you admission. Submit your SIR by May 1.",
                    ),
                ),
            )
        ]
    )
    result = _scanner(mailbox).scan(SCHOOL, set(), NOW)
    assert mailbox.queries == [("from:berkeley.edu after:2026/09/18", 20)]
    assert len(result.records) == 1
    record = result.records[0]
    assert record.id == "m1"
    assert record.school == "ucb"
    assert record.date == "2026-10-15"
    assert record.category == "acceptance"
    assert record.confidence == 0.99
    assert result.decision is not None
    assert result.decision.status == "accepted"
    assert result.action_items == ("Submit your SIR by May 1",)


def test_rescan_with_seen_ids_yields_nothing() -> None:
    """Summary: Already-seen message ids are skipped.

    Importance: Re-running a scan on an unchanged mailbox must be idempotent.
    Alternatives: Deduplicate on subject text.
    """

    thread = MailThread(id="t1", messages=(_message("m1", "Congratulations, you are admitted"),))
    scanner = _scanner(FakeMailbox([thread]))
    first = scanner.scan(SCHOOL, set(), NOW)
    second = scanner.scan(SCHOOL, {record.id for record in first.records}, NOW)
    assert second.records == ()
    assert second.decision is None
    assert second.action_items == ()


def test_duplicate_message_across_threads_logged_once() -> None:
    message = _message("m1", "Campus tour")
    mailbox = FakeMailbox([MailThread(id="t1", messages=(message,)), MailThread(id="t2", messages=(message,))])
    result = _scanner(mailbox).scan(SCHOOL, set(), NOW)
    assert [record.id for record in result.records] == ["m1"]


def test_higher_confidence_decision_is_kept() -> None:
    """Summary: A later, weaker decision does not replace an earlier, stronger one.

    Importance: Replacement requires strict improvement.
    Alternatives: Keep the most recent decision.
    """

    classifier = KeywordClassifier(
        rules=(KeywordRule("acceptance", ("admitted", "congratulations"), ("welcome", "offer"), 0.5),),
        subject_weight=0.3,
        body_weight=0.1,
    )
    mailbox = FakeMailbox(
        [
            MailThread(
                id="t1",
                messages=(
                    _message("m1", "Congratulations, you are admitted"),
                    _message("m2", "You are admitted", "Welcome! Here is your offer."),
                ),
            )
        ]
    )
    result = _scanner(mailbox, classifier).scan(SCHOOL, set(), NOW)
    assert [record.confidence for record in result.records] == [0.6, 0.5]
    assert result.decision is not None
    assert result.decision.confidence == 0.6
    assert result.decision.subject == "Congratulations, you are admitted"


def test_equal_confidence_keeps_first_decision() -> None:
    mailbox = FakeMailbox(
        [
            MailThread(
                id="t1",
                messages=(
                    _message("m1", "Congratulations, you are admitted"),
                    _message("m2", "We regret we are unable to offer you a place"),
                ),
            )
        ]
    )
    result = _scanner(mailbox).scan(SCHOOL, set(), NOW)
    assert result.decision is not None
    assert result.decision.category == "acceptance"


def test_action_required_is_not_a_decision() -> None:
    mailbox = FakeMailbox(
        [MailThread(id="t1", messages=(_message("m1", "Final Reminder: Submit TAU by March 15"),))]
    )
    result = _scanner(mailbox).scan(SCHOOL, set(), NOW)
    assert result.records[0].category == "action_required"
    assert result.decision is None
    assert any("March 15" in item for item in result.action_items)


def test_unreadable_message_is_dropped() -> None:
    """Summary: A broken message is skipped without losing the rest.

    Importance: One corrupt message must not fail the school.
    Alternatives: Fail the whole school scan.
    """

    mailbox = FakeMailbox(
        [
            MailThread(
                id="t1",
                messages=(
                    _message("bad", "Broken", date="not-a-datetime"),
                    _message("m2", "Campus tour"),
                ),
            )
        ]
    )
    result = _scanner(mailbox).scan(SCHOOL, set(), NOW)
    assert [record.id for record in result.records] == ["m2"]


def test_search_failure_raises_school_failure() -> None:
    scanner = _scanner(FakeMailbox(error=RuntimeError("quota exceeded")))
    with pytest.raises(SchoolScanFailure) as excinfo:
        scanner.scan(SCHOOL, set(), NOW)
    assert excinfo.value.school == "ucb"
    assert "quota exceeded" in str(excinfo.value)


def test_long_subject_is_truncated() -> None:
    mailbox = FakeMailbox([MailThread(id="t1", messages=(_message("m1", "A" * 250),))])
    result = _scanner(mailbox).scan(SCHOOL, set(), NOW)
    assert len(result.records[0].subject) == 100
