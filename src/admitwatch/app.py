"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for CLI and API entrypoints.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from admitwatch.catalog import (
    default_keyword_rules,
    default_schools,
    load_keyword_rules,
    load_schools,
)
from admitwatch.classifier import KeywordClassifier
from admitwatch.config import AppConfig
from admitwatch.extractor import ActionItemExtractor
from admitwatch.mailbox import MailboxProvider, build_mailbox
from admitwatch.models import KeywordRule, School
from admitwatch.notifier import Notifier, build_notifier
from admitwatch.scanner import SchoolScanner
from admitwatch.services import ClassificationService, ScanService, StatusService
from admitwatch.storage.tracker_store import TrackerStore, build_tracker_store


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for AdmitWatch.

    Importance: Simplifies passing dependencies to CLI or API layers.
    Alternatives: Use a dependency injection container.
    """

    scan: ScanService
    status: StatusService
    classification: ClassificationService
    schools: tuple[School, ...]
    config: AppConfig


def build_catalog(config: AppConfig) -> tuple[tuple[School, ...], tuple[KeywordRule, ...]]:
    """Summary: Resolve schools and keyword rules from config overrides or built-ins."""

    schools = load_schools(Path(config.schools_path)) if config.schools_path else default_schools()
    rules = (
        load_keyword_rules(Path(config.keyword_rules_path))
        if config.keyword_rules_path
        else default_keyword_rules()
    )
    return tuple(schools), tuple(rules)


def build_services(
    config: AppConfig,
    mailbox: MailboxProvider | None = None,
    store: TrackerStore | None = None,
    notifier: Notifier | None = None,
) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Adapters can be substituted, which keeps tests off the network.
    Alternatives: Instantiate services directly within the CLI entrypoint.
    """

    schools, rules = build_catalog(config)
    classifier = KeywordClassifier(rules=rules)
    extractor = ActionItemExtractor()
    store = store or build_tracker_store(config)
    scanner = SchoolScanner(
        mailbox=mailbox or build_mailbox(config),
        classifier=classifier,
        extractor=extractor,
        days_back=config.days_back,
        max_threads=config.max_threads,
        decision_threshold=config.decision_threshold,
    )
    scan = ScanService(
        store=store,
        scanner=scanner,
        notifier=notifier or build_notifier(config),
        schools=schools,
        tracker_path=config.tracker_path,
        tracker_ref=config.tracker_ref,
        notify_recipient=config.notify_recipient,
        operator_recipient=config.operator_recipient,
        email_log_limit=config.email_log_limit,
        scan_history_limit=config.scan_history_limit,
    )
    status = StatusService(
        store=store,
        schools=schools,
        tracker_path=config.tracker_path,
        tracker_ref=config.tracker_ref,
    )
    return AppServices(
        scan=scan,
        status=status,
        classification=ClassificationService(classifier=classifier, extractor=extractor),
        schools=schools,
        config=config,
    )
