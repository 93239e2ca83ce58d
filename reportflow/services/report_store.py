# reportflow/services/report_store.py
# Row-level access to activity reports with status-gated mutability.
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Iterable

import structlog
from sqlalchemy.orm import Session

from reportflow.core.config import settings
from reportflow.core.enums import (
    EDITABLE_STATUSES, OWNER_STATUSES, VERIFICATION_STATUSES, ReportStatus, can_transition,
)
from reportflow.core.errors import EditForbidden, InvalidInput, NotFound
from reportflow.db import models
from reportflow.db.models import utc_now
from reportflow.services.report_policy import ReportPolicy, duration_minutes

logger = structlog.get_logger("reportflow.reports")

EDITABLE_FIELDS = (
    "activity_date", "category", "name", "description", "target_output", "result_output",
    "start_time", "end_time", "location", "obstacles", "solution",
)
REQUIRED_FIELDS = ("activity_date", "category", "name", "description", "start_time", "end_time")


def parse_status(value: ReportStatus | str) -> ReportStatus:
    try:
        return ReportStatus(value)
    except ValueError:
        raise InvalidInput(f"Unknown report status {value!r}") from None


def validate_rating(rating: float | None) -> None:
    if rating is not None and not 0 <= rating <= 5:
        raise InvalidInput("Quality rating must be between 0 and 5")


class ReportStore:
    """Owns report rows. Mutations are flushed, never committed: the caller
    decides the transaction boundary and is responsible for recomputing
    aggregates afterwards."""

    def __init__(
        self,
        db: Session,
        policy: ReportPolicy | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.policy = policy or ReportPolicy.from_settings(settings)
        self.today = today

    def get(self, report_id: int) -> models.ActivityReport:
        report = self.db.get(models.ActivityReport, report_id)
        if report is None:
            raise NotFound(f"Report {report_id} not found")
        return report

    def list_for_employees(
        self,
        employee_ids: Iterable[int],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[models.ActivityReport]:
        ids = list(employee_ids)
        if not ids:
            return []
        query = self.db.query(models.ActivityReport).filter(models.ActivityReport.employee_id.in_(ids))
        if start_date is not None:
            query = query.filter(models.ActivityReport.activity_date >= start_date)
        if end_date is not None:
            query = query.filter(models.ActivityReport.activity_date <= end_date)
        return query.order_by(
            models.ActivityReport.activity_date.desc(), models.ActivityReport.created_at.desc()
        ).all()

    def create(
        self,
        owner_id: int,
        fields: dict[str, Any],
        status: ReportStatus = ReportStatus.DRAFT,
    ) -> models.ActivityReport:
        status = parse_status(status)
        if status not in OWNER_STATUSES:
            raise InvalidInput("A new report must be Draft or Submitted")

        if status is ReportStatus.SUBMITTED:
            minutes = self.policy.validate_submission(
                fields["activity_date"], fields["start_time"], fields["end_time"], self.today()
            )
        else:
            minutes = duration_minutes(fields["start_time"], fields["end_time"])

        report = models.ActivityReport(
            employee_id=owner_id,
            duration_minutes=minutes,
            status=status.value,
            submitted_at=utc_now() if status is ReportStatus.SUBMITTED else None,
            **{name: fields.get(name) for name in EDITABLE_FIELDS},
        )
        self.db.add(report)
        self.db.flush()
        logger.info("report_created", report_id=report.id, employee_id=owner_id, status=status.value)
        return report

    def _ensure_editable(self, report: models.ActivityReport) -> ReportStatus:
        current = ReportStatus(report.status)
        if current not in EDITABLE_STATUSES:
            raise EditForbidden(
                f"Report {report.id} is {current.value}; only Draft, Submitted or NeedsRevision reports can change"
            )
        return current

    def update(self, report_id: int, changes: dict[str, Any]) -> models.ActivityReport:
        report = self.get(report_id)
        current = self._ensure_editable(report)

        for name in REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise InvalidInput(f"{name} cannot be empty")

        target = current
        if changes.get("status") is not None:
            target = parse_status(changes["status"])
            if target not in OWNER_STATUSES or not can_transition(current, target):
                raise InvalidInput(f"Cannot move a {current.value} report to {target.value}")

        activity_date = changes.get("activity_date") or report.activity_date
        start = changes.get("start_time") or report.start_time
        end = changes.get("end_time") or report.end_time

        if target is ReportStatus.SUBMITTED and current is not ReportStatus.SUBMITTED:
            minutes = self.policy.validate_submission(activity_date, start, end, self.today())
            report.submitted_at = utc_now()
        else:
            minutes = duration_minutes(start, end)

        for name in EDITABLE_FIELDS:
            if name in changes:
                setattr(report, name, changes[name])
        report.duration_minutes = minutes
        report.status = target.value
        report.is_edited = True
        report.edit_count = (report.edit_count or 0) + 1

        self.db.flush()
        logger.info("report_updated", report_id=report.id, status=target.value, edit_count=report.edit_count)
        return report

    def delete(self, report_id: int) -> models.ActivityReport:
        report = self.get(report_id)
        self._ensure_editable(report)
        self.db.delete(report)
        self.db.flush()
        logger.info("report_deleted", report_id=report_id, employee_id=report.employee_id)
        return report

    def verify(
        self,
        report_id: int,
        status: ReportStatus,
        verifier_id: int,
        note: str | None = None,
        rating: float | None = None,
    ) -> models.ActivityReport:
        """The only path to Verified, Rejected or NeedsRevision. Authorization is
        the caller's job."""
        status = parse_status(status)
        if status not in VERIFICATION_STATUSES:
            raise InvalidInput(f"{status.value} is not a verification outcome")
        validate_rating(rating)

        report = self.get(report_id)
        report.status = status.value
        report.verifier_id = verifier_id
        report.verification_note = note
        report.quality_rating = rating
        report.verified_at = utc_now()
        self.db.flush()
        return report
