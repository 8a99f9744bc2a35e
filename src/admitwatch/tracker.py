"""Summary: Merge of per-school scan results into the tracker document.

Importance: Owns dedup, decision overwrite, action-item union, and history caps.
Alternatives: Append raw results and reconcile lazily when reading.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from admitwatch.models import (
    Decision,
    School,
    SchoolScanOutcome,
    SchoolState,
    TrackerDocument,
)


@dataclass(frozen=True)
class MergeResult:
    new_email_count: int
    decisions: tuple[Decision, ...]
    history_entry: dict


def merge_scan(
    document: TrackerDocument,
    outcomes: list[SchoolScanOutcome],
    schools: dict[str, School],
    now: datetime,
    email_log_limit: int = 100,
    scan_history_limit: int = 50,
) -> MergeResult:
    """Summary: Fold school outcomes into the document in place.

    Importance: The last decision of a scan overwrites the school's status unconditionally.
    Alternatives: Only move status forward when confidence beats the stored value.
    """

    logged = document.seen_ids()
    new_email_count = 0
    decisions: list[Decision] = []
    for outcome in outcomes:
        result = outcome.result
        if result is None:
            continue
        fresh = []
        for record in result.records:
            if record.id in logged:
                continue
            logged.add(record.id)
            fresh.append(record.to_dict())
        document.email_log = fresh + document.email_log
        new_email_count += len(fresh)

        state = document.schools.get(result.school)
        if state is None and (result.decision is not None or result.action_items):
            state = SchoolState()
            document.schools[result.school] = state
        if result.decision is not None:
            decision = result.decision
            state.status = decision.status
            state.decision_date = decision.date
            state.confidence = decision.confidence
            state.notes = f"Auto-detected from email: {decision.subject}"
            decisions.append(decision)
        for item in result.action_items:
            if item not in state.action_items:
                state.action_items.append(item)

    document.email_log = document.email_log[:email_log_limit]
    document.metadata.last_scan = now.isoformat()
    document.metadata.total_scans += 1
    document.metadata.total_emails_processed += new_email_count

    failed = [outcome.school for outcome in outcomes if not outcome.ok]
    entry = {
        "scan_date": now.date().isoformat(),
        "scan_timestamp": now.isoformat(),
        "emails_found": new_email_count,
        "new_decisions": len(decisions),
        "notes": summarize_scan(new_email_count, decisions, failed, schools),
    }
    document.scan_history = [entry] + document.scan_history
    document.scan_history = document.scan_history[:scan_history_limit]
    return MergeResult(new_email_count=new_email_count, decisions=tuple(decisions), history_entry=entry)


def summarize_scan(
    new_email_count: int,
    decisions: list[Decision],
    failed: list[str],
    schools: dict[str, School],
) -> str:
    """Summary: Human-readable one-line summary for the scan history."""

    if new_email_count == 0:
        parts = ["No new emails"]
    else:
        parts = [f"{new_email_count} new email{'s' if new_email_count != 1 else ''}"]
    if decisions:
        found = ", ".join(
            f"{schools[item.school].short_name if item.school in schools else item.school}: {item.status}"
            for item in decisions
        )
        parts.append(f"decisions: {found}")
    if failed:
        parts.append(f"failed: {', '.join(failed)}")
    return "; ".join(parts)
