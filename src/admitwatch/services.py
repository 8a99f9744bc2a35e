"""Summary: Core application services for AdmitWatch.

Importance: Orchestrates load, scan, merge, save, and notify for each scheduled run.
Alternatives: Build a full service layer with dependency injection framework.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from admitwatch.classifier import KeywordClassifier
from admitwatch.errors import LoadFailure, NotifyFailure, SaveFailure
from admitwatch.extractor import ActionItemExtractor
from admitwatch.models import (
    Classification,
    Decision,
    School,
    SchoolScanOutcome,
    ScanReport,
    ScanSummary,
    TrackerDocument,
)
from admitwatch.notifier import Notifier, build_decision_alert
from admitwatch.scanner import SchoolScanner
from admitwatch.storage.tracker_store import TrackerStore
from admitwatch.tracker import merge_scan


logger = logging.getLogger(__name__)


class ScanStage(str, Enum):
    LOADING = "loading"
    SCANNING = "scanning"
    MERGING = "merging"
    SAVING = "saving"
    NOTIFYING = "notifying"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ScanService:
    """Summary: Runs a full scan over every configured school.

    Importance: Owns the tracker document for the duration of a run.
    Alternatives: Let each school scan write its own partial document.
    """

    store: TrackerStore
    scanner: SchoolScanner
    notifier: Notifier
    schools: tuple[School, ...]
    tracker_path: str
    tracker_ref: str
    notify_recipient: str
    operator_recipient: str
    email_log_limit: int = 100
    scan_history_limit: int = 50

    def run_scan(self, now: datetime | None = None) -> ScanSummary:
        """Summary: Load, scan, merge, save, and notify.

        Importance: Only a load failure aborts; later stages degrade and are reported.
        Alternatives: Treat any failure as fatal and retry the whole run.
        """

        now = now or datetime.now()
        document, token = self._load()
        outcomes = self._scan_all(document.seen_ids(), now)

        logger.info("Stage %s.", ScanStage.MERGING.value)
        merged = merge_scan(
            document,
            outcomes,
            self._schools_by_key(),
            now,
            email_log_limit=self.email_log_limit,
            scan_history_limit=self.scan_history_limit,
        )
        errors: list[str] = []

        logger.info("Stage %s.", ScanStage.SAVING.value)
        saved = True
        commit_message = f"Admissions scan {now.strftime('%Y-%m-%d %H:%M')}: {merged.history_entry['notes']}"
        try:
            self._save(document, token, commit_message)
        except SaveFailure as exc:
            saved = False
            errors.append(str(exc))
            logger.error("Scan results were not persisted: %s", exc)

        notified = False
        if merged.decisions:
            logger.info("Stage %s.", ScanStage.NOTIFYING.value)
            try:
                self._notify(list(merged.decisions))
                notified = True
            except NotifyFailure as exc:
                errors.append(str(exc))
                logger.error("Decision alert was not delivered: %s", exc)

        failed = tuple(outcome.school for outcome in outcomes if not outcome.ok)
        logger.info(
            "Stage %s: %s new emails, %s decisions, %s failed schools.",
            ScanStage.DONE.value,
            merged.new_email_count,
            len(merged.decisions),
            len(failed),
        )
        return ScanSummary(
            new_email_count=merged.new_email_count,
            decision_count=len(merged.decisions),
            failed_schools=failed,
            saved=saved,
            notified=notified,
            decisions=merged.decisions,
            errors=tuple(errors),
        )

    def dry_run(self, now: datetime | None = None) -> ScanReport:
        """Summary: Load and scan without saving or notifying.

        Importance: Lets the owner preview what a real run would record.
        Alternatives: Run against a copy of the tracker file.
        """

        now = now or datetime.now()
        document, _ = self._load()
        return ScanReport(outcomes=tuple(self._scan_all(document.seen_ids(), now)))

    def _load(self) -> tuple[TrackerDocument, str | None]:
        logger.info("Stage %s.", ScanStage.LOADING.value)
        try:
            raw, token = self.store.load(self.tracker_path, self.tracker_ref)
            document = TrackerDocument.from_dict(raw)
        except Exception as exc:
            logger.error("Stage %s: tracker load failed: %s", ScanStage.ABORTED.value, exc)
            self._alert_operator(exc)
            raise LoadFailure(f"Could not load tracker {self.tracker_path}: {exc}") from exc
        return document, token

    def _alert_operator(self, exc: Exception) -> None:
        try:
            self.notifier.send(
                self.operator_recipient,
                "Admissions scan aborted",
                f"The tracker document {self.tracker_path}@{self.tracker_ref} could not be loaded.\n\n{exc}",
            )
        except Exception as alert_exc:
            logger.error("Operator alert failed: %s", alert_exc)

    def _scan_all(self, seen_ids: set[str], now: datetime) -> list[SchoolScanOutcome]:
        logger.info("Stage %s: %s schools.", ScanStage.SCANNING.value, len(self.schools))
        outcomes: list[SchoolScanOutcome] = []
        for school in self.schools:
            try:
                result = self.scanner.scan(school, seen_ids, now)
            except Exception as exc:
                logger.warning("School scan failed for %s: %s", school.key, exc)
                outcomes.append(SchoolScanOutcome(school=school.key, error=str(exc)))
                continue
            outcomes.append(SchoolScanOutcome(school=school.key, result=result))
        return outcomes

    def _save(self, document: TrackerDocument, token: str | None, message: str) -> str:
        try:
            return self.store.save(self.tracker_path, document.to_dict(), token, message)
        except Exception as exc:
            raise SaveFailure(f"Could not save tracker {self.tracker_path}: {exc}") from exc

    def _notify(self, decisions: list[Decision]) -> None:
        subject, body = build_decision_alert(decisions, self._schools_by_key())
        try:
            self.notifier.send(self.notify_recipient, subject, body)
        except Exception as exc:
            raise NotifyFailure(f"Could not send decision alert: {exc}") from exc

    def _schools_by_key(self) -> dict[str, School]:
        return {school.key: school for school in self.schools}


@dataclass(frozen=True)
class StatusService:
    """Summary: Read-only view of the tracker document.

    Importance: Powers status output without touching scan state.
    Alternatives: Read the JSON file by hand.
    """

    store: TrackerStore
    schools: tuple[School, ...]
    tracker_path: str
    tracker_ref: str

    def snapshot(self) -> dict[str, Any]:
        """Summary: Return metadata and one row per configured school."""

        raw, _ = self.store.load(self.tracker_path, self.tracker_ref)
        document = TrackerDocument.from_dict(raw)
        rows = []
        for school in self.schools:
            state = document.schools.get(school.key)
            rows.append(
                {
                    "key": school.key,
                    "name": school.name,
                    "type": school.school_type,
                    "status": state.status if state else "unknown",
                    "decision_date": state.decision_date if state else None,
                    "confidence": state.confidence if state else None,
                    "action_items": list(state.action_items) if state else [],
                }
            )
        return {
            "metadata": {
                "last_scan": document.metadata.last_scan,
                "total_scans": document.metadata.total_scans,
                "total_emails_processed": document.metadata.total_emails_processed,
            },
            "schools": rows,
            "recent_emails": document.email_log[:10],
        }


@dataclass(frozen=True)
class ClassificationService:
    """Summary: Ad-hoc classification of a subject and body.

    Importance: Lets users check how a message would be scored before tuning rules.
    Alternatives: Only classify during scans.
    """

    classifier: KeywordClassifier
    extractor: ActionItemExtractor

    def classify(self, subject: str, body: str) -> tuple[Classification, list[str]]:
        return self.classifier.classify(subject, body), self.extractor.extract(subject, body)
