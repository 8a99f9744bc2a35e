"""Summary: Command-line interface for AdmitWatch.

Importance: Entry point for the scheduler (cron, CI) and for local inspection.
Alternatives: Use a CLI framework like Typer or Click.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from admitwatch.app import build_services
from admitwatch.config import AppConfig
from admitwatch.errors import LoadFailure


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for scheduled and manual runs.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="AdmitWatch CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("scan", help="Scan mail, update the tracker, and send alerts")
    subparsers.add_parser("dry-run", help="Scan mail and report without saving or alerting")

    classify = subparsers.add_parser("classify", help="Classify a subject and body")
    classify.add_argument("subject", type=str)
    classify.add_argument("body", type=str, nargs="?", default="")

    status = subparsers.add_parser("status", help="Show tracked school status")
    status.add_argument("--json", action="store_true")

    subparsers.add_parser("list-schools", help="List configured schools")
    return parser


def run_cli() -> None:
    """Summary: Execute CLI commands based on arguments.

    Importance: A load failure exits non-zero so schedulers flag the run.
    Alternatives: Invoke services via the HTTP API.
    """

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args()
    config = AppConfig.from_env()
    services = build_services(config)

    if args.command == "scan":
        try:
            summary = services.scan.run_scan()
        except LoadFailure as exc:
            print(f"Scan aborted: {exc}", file=sys.stderr)
            sys.exit(1)
        print(f"New emails: {summary.new_email_count}, decisions: {summary.decision_count}")
        if summary.failed_schools:
            print(f"Failed schools: {', '.join(summary.failed_schools)}")
        if not summary.saved:
            print("WARNING: results were not saved.")
        for error in summary.errors:
            print(f"Error: {error}")
        return

    if args.command == "dry-run":
        try:
            report = services.scan.dry_run()
        except LoadFailure as exc:
            print(f"Dry run aborted: {exc}", file=sys.stderr)
            sys.exit(1)
        for outcome in report.outcomes:
            if not outcome.ok:
                print(f"{outcome.school}: FAILED ({outcome.error})")
                continue
            result = outcome.result
            print(f"{outcome.school}: {len(result.records)} new")
            for record in result.records:
                print(f"  [{record.category} {record.confidence:.2f}] {record.date} {record.subject}")
            if result.decision:
                print(f"  decision: {result.decision.status} ({result.decision.confidence:.2f})")
            for item in result.action_items:
                print(f"  action: {item}")
        print(f"Would record {report.new_email_count} emails and {len(report.decisions)} decisions.")
        return

    if args.command == "classify":
        classification, items = services.classification.classify(args.subject, args.body)
        print(f"{classification.category} ({classification.confidence:.2f})")
        for item in items:
            print(f"- {item}")
        return

    if args.command == "status":
        snapshot = services.status.snapshot()
        if args.json:
            print(json.dumps(snapshot, indent=2))
            return
        metadata = snapshot["metadata"]
        print(f"Last scan: {metadata['last_scan'] or 'never'} ({metadata['total_scans']} scans)")
        for row in snapshot["schools"]:
            print(f"{row['name']}: {row['status']} {row['decision_date'] or ''}".rstrip())
            for item in row["action_items"]:
                print(f"  - {item}")
        return

    if args.command == "list-schools":
        for school in services.schools:
            print(f"{school.key}: {school.name} ({school.domain}, {school.school_type})")
        return


if __name__ == "__main__":
    run_cli()
