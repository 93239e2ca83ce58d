"""
Supervisor verification of activity reports.

``verify_report`` authorizes the actor against the supervisor directory as of
today, applies the status change, rebuilds the owner's aggregates for the
report date and queues a notification for the owner. Validation and
authorization failures leave no trace. Once the status change is applied it
is committed even if the aggregate rebuild fails; that failure is logged and
the aggregate heals on the next recomputation for the same day.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable

import structlog
from sqlalchemy.orm import Session

from reportflow.core.enums import VERIFICATION_STATUSES, AuditAction, ReportStatus, can_transition
from reportflow.core.errors import (
    DependencyFailure, EditForbidden, InvalidInput, NotAuthorized, SelfVerificationForbidden,
)
from reportflow.db import models
from reportflow.services.aggregates import AggregateRecomputer
from reportflow.services.audit import AuditTrail, snapshot
from reportflow.services.messaging import normalize_phone
from reportflow.services.notifications import (
    STATUS_CATEGORIES, NotificationDispatcher, NotificationMetadata, build_verification_message,
)
from reportflow.services.report_store import ReportStore, parse_status, validate_rating
from reportflow.services.supervisor_directory import SupervisorDirectory

logger = structlog.get_logger("reportflow.verification")

NOTIFICATION_TITLES = {
    ReportStatus.VERIFIED: "Your activity report was verified",
    ReportStatus.REJECTED: "Your activity report was rejected",
    ReportStatus.NEEDS_REVISION: "Your activity report needs revision",
}


@dataclass
class VerificationResult:
    report: models.ActivityReport
    aggregate: models.DailyAggregate | None


class VerificationOrchestrator:
    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher | None = None,
        today: Callable[[], date] = date.today,
        store: ReportStore | None = None,
        directory: SupervisorDirectory | None = None,
        recomputer: AggregateRecomputer | None = None,
        audit: AuditTrail | None = None,
    ):
        self.db = db
        self.audit = audit or AuditTrail(db)
        self.dispatcher = dispatcher
        self.today = today
        self.store = store or ReportStore(db, today=today)
        self.directory = directory or SupervisorDirectory(db)
        self.recomputer = recomputer or AggregateRecomputer(db)

    def authorize(self, actor_id: int, report_id: int) -> models.ActivityReport:
        """Load a report and check the actor currently supervises its owner.

        Administrators get no bypass here: verification rights come only from
        the supervisor relation.
        """
        report = self.store.get(report_id)
        if report.employee_id == actor_id:
            raise SelfVerificationForbidden("You cannot verify your own report")
        if not self.directory.is_supervisor_of(actor_id, report.employee_id, self.today()):
            raise NotAuthorized("You are not the supervisor of this employee")
        return report

    def verify_report(
        self,
        actor_id: int,
        report_id: int,
        status: ReportStatus | str,
        note: str | None = None,
        rating: float | None = None,
        complete_flag: bool | None = None,
    ) -> VerificationResult:
        report = self.authorize(actor_id, report_id)

        status = parse_status(status)
        if status not in VERIFICATION_STATUSES:
            raise InvalidInput(f"{status.value} is not a verification outcome")
        validate_rating(rating)

        current = ReportStatus(report.status)
        if not can_transition(current, status):
            raise EditForbidden(f"A {current.value} report cannot be verified")

        note = (note or "").strip() or None
        owner_id, day = report.employee_id, report.activity_date
        before = self._snapshot(report, self.recomputer.get_daily(owner_id, day))

        try:
            self.store.verify(report_id, status, actor_id, note, rating)
            aggregate = self._refresh_aggregate(owner_id, day, complete_flag)
            self.db.commit()
        except DependencyFailure:
            # The status change stays; the aggregate catches up on the next rebuild.
            logger.exception("aggregate_refresh_failed", report_id=report_id, employee_id=owner_id, date=day.isoformat())
            self.db.commit()
            aggregate = self.recomputer.get_daily(owner_id, day)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "report_verified",
            report_id=report_id,
            verifier_id=actor_id,
            status=status.value,
            rating=rating,
        )
        self.audit.record(
            actor_id,
            AuditAction.UPDATE,
            "Report",
            detail=f"Verified report {report.name} as {status.value}",
            before=before,
            after=self._snapshot(report, aggregate),
        )
        self._notify_owner(report, actor_id, status, note, rating)
        return VerificationResult(report=report, aggregate=aggregate)

    @staticmethod
    def _snapshot(report: models.ActivityReport, aggregate: models.DailyAggregate | None) -> dict:
        return {"report": snapshot(report), "daily_aggregate": snapshot(aggregate)}

    def _refresh_aggregate(self, employee_id: int, day: date, complete_flag: bool | None) -> models.DailyAggregate:
        try:
            with self.db.begin_nested():
                aggregate = self.recomputer.recompute_all(employee_id, day)
                if complete_flag is not None:
                    aggregate = self.recomputer.set_completion_flag(employee_id, day, complete_flag)
        except Exception as exc:
            raise DependencyFailure(f"Aggregate refresh failed for employee {employee_id} on {day}") from exc
        return aggregate

    def _notify_owner(
        self,
        report: models.ActivityReport,
        verifier_id: int,
        status: ReportStatus,
        note: str | None,
        rating: float | None,
    ) -> None:
        if self.dispatcher is None:
            return
        try:
            owner = report.owner
            phone = normalize_phone(owner.phone or "")
            if not phone:
                logger.info("notification_skipped_no_phone", employee_id=owner.id, report_id=report.id)
                return
            verifier = self.db.get(models.Employee, verifier_id)
            message = build_verification_message(report, verifier, status, note, rating)
            metadata = NotificationMetadata(
                title=NOTIFICATION_TITLES[status],
                category=STATUS_CATEGORIES[status],
                report_id=report.id,
                link=f"/reports/{report.id}",
                action_required=status is ReportStatus.NEEDS_REVISION,
            )
            self.dispatcher.dispatch(owner.id, phone, message, metadata)
        except Exception:
            logger.exception("notification_dispatch_failed", report_id=report.id)
