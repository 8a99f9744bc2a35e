"""Summary: FastAPI application for AdmitWatch.

Importance: Exposes the scan trigger and tracker status over HTTP for schedulers and dashboards.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from admitwatch.app import AppServices, build_services
from admitwatch.config import AppConfig
from admitwatch.errors import LoadFailure
from admitwatch.models import Decision


class ClassifyRequest(BaseModel):
    """Summary: Request payload for ad-hoc classification."""

    subject: str
    body: str = Field(default="")


class DecisionPayload(BaseModel):
    school: str
    status: str
    confidence: float
    date: str
    subject: str


class ScanResponse(BaseModel):
    """Summary: Response for a full scan run.

    Importance: Mirrors the run summary returned to the scheduler.
    Alternatives: Return only counts.
    """

    new_email_count: int
    decision_count: int
    failed_schools: list[str]
    saved: bool
    notified: bool
    decisions: list[DecisionPayload]
    errors: list[str]


def _decision_payload(decision: Decision) -> DecisionPayload:
    return DecisionPayload(
        school=decision.school,
        status=decision.status,
        confidence=decision.confidence,
        date=decision.date,
        subject=decision.subject,
    )


def create_app(config: AppConfig, services: AppServices | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to AdmitWatch services.

    Importance: Ensures the API layer shares the same configuration and adapters.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = FastAPI(title="AdmitWatch API", version="0.1.0")
    services = services or build_services(config)

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured."""

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/schools")
    def list_schools() -> list[dict[str, str]]:
        return [
            {
                "key": school.key,
                "name": school.name,
                "short_name": school.short_name,
                "domain": school.domain,
                "type": school.school_type,
            }
            for school in services.schools
        ]

    @app.get("/status", dependencies=[Depends(require_api_key)])
    def status() -> dict[str, Any]:
        try:
            return services.status.snapshot()
        except (RuntimeError, ValueError) as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.post("/classify")
    def classify(payload: ClassifyRequest) -> dict[str, Any]:
        classification, items = services.classification.classify(payload.subject, payload.body)
        return {
            "category": classification.category,
            "confidence": classification.confidence,
            "action_items": items,
        }

    @app.post("/scan", dependencies=[Depends(require_api_key)])
    def scan() -> ScanResponse:
        """Summary: Run a full scan.

        Importance: The trigger surface for external schedulers.
        Alternatives: Run scans on an in-process timer.
        """

        try:
            summary = services.scan.run_scan()
        except LoadFailure as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return ScanResponse(
            new_email_count=summary.new_email_count,
            decision_count=summary.decision_count,
            failed_schools=list(summary.failed_schools),
            saved=summary.saved,
            notified=summary.notified,
            decisions=[_decision_payload(item) for item in summary.decisions],
            errors=list(summary.errors),
        )

    @app.post("/scan/dry-run", dependencies=[Depends(require_api_key)])
    def dry_run() -> dict[str, Any]:
        try:
            report = services.scan.dry_run()
        except LoadFailure as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        schools = []
        for outcome in report.outcomes:
            result = outcome.result
            schools.append(
                {
                    "school": outcome.school,
                    "error": outcome.error,
                    "emails": [record.to_dict() for record in result.records] if result else [],
                    "decision": _decision_payload(result.decision).model_dump()
                    if result and result.decision
                    else None,
                    "action_items": list(result.action_items) if result else [],
                }
            )
        return {
            "new_email_count": report.new_email_count,
            "decision_count": len(report.decisions),
            "failed_schools": report.failed_schools,
            "schools": schools,
        }

    return app
