"""Summary: Domain model dataclasses for AdmitWatch.

Importance: Defines the entities shared by the classifier, scanner, and tracker merge.
Alternatives: Use Pydantic models or pass raw JSON dictionaries around.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

ACCEPTANCE = "acceptance"
REJECTION = "rejection"
WAITLIST = "waitlist"
ACTION_REQUIRED = "action_required"
INFORMATIONAL = "informational"

DECISION_CATEGORIES = (ACCEPTANCE, REJECTION, WAITLIST)

DECISION_STATUS = {
    ACCEPTANCE: "accepted",
    REJECTION: "rejected",
    WAITLIST: "waitlisted",
}


@dataclass(frozen=True)
class School:
    """Summary: Represents a tracked institution.

    Importance: The mail domain drives the per-school mailbox search.
    Alternatives: Match schools by sender display name instead of domain.
    """

    key: str
    domain: str
    name: str
    short_name: str
    school_type: str


@dataclass(frozen=True)
class KeywordRule:
    """Summary: Keyword scoring rule for one category.

    Importance: Keeps classification policy in data rather than code.
    Alternatives: Use regular expressions or a trained model per category.
    """

    category: str
    subject_keywords: tuple[str, ...]
    body_keywords: tuple[str, ...]
    min_score: float


@dataclass(frozen=True)
class MailMessage:
    """Summary: A single message returned by the mailbox collaborator."""

    id: str
    subject: str
    body: str
    date: datetime
    sender: str


@dataclass(frozen=True)
class MailThread:
    """Summary: A conversation thread of messages."""

    id: str
    messages: tuple[MailMessage, ...]


@dataclass(frozen=True)
class Classification:
    """Summary: Category and confidence assigned to a message."""

    category: str
    confidence: float


@dataclass(frozen=True)
class EmailRecord:
    """Summary: Log entry for a newly observed message.

    Importance: The id is the dedup key across scans.
    Alternatives: Deduplicate on subject and date instead of provider ids.
    """

    id: str
    school: str
    date: str
    subject: str
    category: str
    confidence: float
    sender: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "school": self.school,
            "date": self.date,
            "subject": self.subject,
            "category": self.category,
            "confidence": self.confidence,
            "from": self.sender,
        }


@dataclass(frozen=True)
class Decision:
    """Summary: The winning admission decision for a school within one scan."""

    school: str
    category: str
    confidence: float
    date: str
    subject: str

    @property
    def status(self) -> str:
        return DECISION_STATUS[self.category]


@dataclass(frozen=True)
class SchoolScanResult:
    """Summary: Output of scanning one school.

    Importance: Carries everything the merge step needs without touching the document.
    Alternatives: Let the scanner mutate the tracker document directly.
    """

    school: str
    records: tuple[EmailRecord, ...] = ()
    decision: Decision | None = None
    action_items: tuple[str, ...] = ()


@dataclass(frozen=True)
class SchoolScanOutcome:
    """Summary: Either a scan result or the reason a school scan failed.

    Importance: Lets the orchestrator fold per-school results and tally failures.
    Alternatives: Swallow exceptions inside the loop and lose the failure reason.
    """

    school: str
    result: SchoolScanResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SchoolState:
    """Summary: Persisted status of one school in the tracker document."""

    status: str = "unknown"
    decision_date: str | None = None
    confidence: float | None = None
    notes: str = ""
    action_items: list[str] = field(default_factory=list)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "SchoolState":
        return SchoolState(
            status=data.get("status") or "unknown",
            decision_date=data.get("decision_date"),
            confidence=data.get("confidence"),
            notes=data.get("notes") or "",
            action_items=list(data.get("action_items") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "decision_date": self.decision_date,
            "confidence": self.confidence,
            "notes": self.notes,
            "action_items": list(self.action_items),
        }


@dataclass
class TrackerMetadata:
    last_scan: str | None = None
    total_scans: int = 0
    total_emails_processed: int = 0


@dataclass
class TrackerDocument:
    """Summary: The persisted tracker aggregate.

    Importance: Sole persisted artifact; loaded at scan start and rewritten at scan end.
    Alternatives: Store each school in its own file or a database table.
    """

    metadata: TrackerMetadata = field(default_factory=TrackerMetadata)
    schools: dict[str, SchoolState] = field(default_factory=dict)
    email_log: list[dict[str, Any]] = field(default_factory=list)
    scan_history: list[dict[str, Any]] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> "TrackerDocument":
        """Summary: Build a document from its JSON form.

        Importance: Tolerates partially filled or hand-edited tracker files.
        Alternatives: Reject documents missing any top-level section.
        """

        data = dict(data or {})
        metadata = data.pop("metadata", None) or {}
        schools = data.pop("schools", None) or {}
        email_log = data.pop("email_log", None) or []
        scan_history = data.pop("scan_history", None) or []
        return TrackerDocument(
            metadata=TrackerMetadata(
                last_scan=metadata.get("last_scan"),
                total_scans=int(metadata.get("total_scans") or 0),
                total_emails_processed=int(metadata.get("total_emails_processed") or 0),
            ),
            schools={key: SchoolState.from_dict(value or {}) for key, value in schools.items()},
            email_log=[entry for entry in email_log if isinstance(entry, dict)],
            scan_history=[entry for entry in scan_history if isinstance(entry, dict)],
            extra=data,
        )

    def to_dict(self) -> dict[str, Any]:
        document: dict[str, Any] = dict(self.extra)
        document["metadata"] = {
            "last_scan": self.metadata.last_scan,
            "total_scans": self.metadata.total_scans,
            "total_emails_processed": self.metadata.total_emails_processed,
        }
        document["schools"] = {key: state.to_dict() for key, state in self.schools.items()}
        document["email_log"] = list(self.email_log)
        document["scan_history"] = list(self.scan_history)
        return document

    def seen_ids(self) -> set[str]:
        return {entry["id"] for entry in self.email_log if entry.get("id")}


@dataclass(frozen=True)
class ScanSummary:
    """Summary: Outcome of a full scan run returned to the trigger.

    Importance: Reports persistence and notification failures distinctly from scan failures.
    Alternatives: Return only counts and rely on logs for everything else.
    """

    new_email_count: int
    decision_count: int
    failed_schools: tuple[str, ...] = ()
    saved: bool = False
    notified: bool = False
    decisions: tuple[Decision, ...] = ()
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanReport:
    """Summary: Read-only report produced by a dry run."""

    outcomes: tuple[SchoolScanOutcome, ...]

    @property
    def new_email_count(self) -> int:
        return sum(len(item.result.records) for item in self.outcomes if item.result)

    @property
    def decisions(self) -> list[Decision]:
        return [
            item.result.decision
            for item in self.outcomes
            if item.result and item.result.decision is not None
        ]

    @property
    def failed_schools(self) -> list[str]:
        return [item.school for item in self.outcomes if not item.ok]
