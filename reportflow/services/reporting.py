# reportflow/services/reporting.py
# Owner-facing report use cases: store mutation, aggregate rebuild, commit.
from __future__ import annotations

from datetime import date
from typing import Any, Callable

import structlog
from sqlalchemy.orm import Session

from reportflow.core.enums import AuditAction, ReportStatus, Role
from reportflow.core.errors import NotAuthorized
from reportflow.db import models
from reportflow.services.aggregates import AggregateRecomputer
from reportflow.services.audit import AuditTrail, snapshot
from reportflow.services.messaging import normalize_phone
from reportflow.services.notifications import (
    NotificationDispatcher, NotificationMetadata, build_submission_message,
)
from reportflow.services.report_policy import ReportPolicy
from reportflow.services.report_store import ReportStore
from reportflow.services.supervisor_directory import SupervisorDirectory

logger = structlog.get_logger("reportflow.reports")


def is_admin(actor: models.Employee) -> bool:
    return actor.role == Role.ADMIN.value


class ReportService:
    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher | None = None,
        today: Callable[[], date] = date.today,
        policy: ReportPolicy | None = None,
        audit: AuditTrail | None = None,
    ):
        self.db = db
        self.audit = audit or AuditTrail(db)
        self.dispatcher = dispatcher
        self.today = today
        self.store = ReportStore(db, policy=policy, today=today)
        self.directory = SupervisorDirectory(db)
        self.recomputer = AggregateRecomputer(db)

    def get_visible(self, actor: models.Employee, report_id: int) -> models.ActivityReport:
        """Owners, admins and the owner's current supervisors may read a report."""
        report = self.store.get(report_id)
        if report.employee_id == actor.id or is_admin(actor):
            return report
        if self.directory.is_supervisor_of(actor.id, report.employee_id, self.today()):
            return report
        raise NotAuthorized("You do not have access to this report")

    def _ensure_owner_or_admin(self, actor: models.Employee, report: models.ActivityReport) -> None:
        if report.employee_id != actor.id and not is_admin(actor):
            raise NotAuthorized("Only the owner or an administrator can change this report")

    def create(self, actor: models.Employee, fields: dict[str, Any], status: ReportStatus) -> models.ActivityReport:
        try:
            report = self.store.create(actor.id, fields, status)
            self.recomputer.recompute_all(actor.id, report.activity_date)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.audit.record(
            actor.id, AuditAction.CREATE, "Report",
            detail=f"Created report {report.name} as {report.status}", after=snapshot(report),
        )
        if report.status == ReportStatus.SUBMITTED.value:
            self._notify_supervisor(report)
        return report

    def update(self, actor: models.Employee, report_id: int, changes: dict[str, Any]) -> models.ActivityReport:
        report = self.store.get(report_id)
        self._ensure_owner_or_admin(actor, report)
        old_date, old_status = report.activity_date, report.status
        before = snapshot(report)
        try:
            report = self.store.update(report_id, changes)
            self.recomputer.recompute_all(report.employee_id, report.activity_date)
            if report.activity_date != old_date:
                self.recomputer.recompute_all(report.employee_id, old_date)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.audit.record(
            actor.id, AuditAction.UPDATE, "Report",
            detail=f"Updated report {report.name}", before=before, after=snapshot(report),
        )
        if report.status == ReportStatus.SUBMITTED.value and old_status != ReportStatus.SUBMITTED.value:
            self._notify_supervisor(report)
        return report

    def delete(self, actor: models.Employee, report_id: int) -> None:
        report = self.store.get(report_id)
        self._ensure_owner_or_admin(actor, report)
        owner_id, day = report.employee_id, report.activity_date
        before = snapshot(report)
        try:
            self.store.delete(report_id)
            self.recomputer.recompute_all(owner_id, day)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.audit.record(
            actor.id, AuditAction.DELETE, "Report", detail=f"Deleted report {before['name']}", before=before,
        )

    def _notify_supervisor(self, report: models.ActivityReport) -> None:
        if self.dispatcher is None:
            return
        try:
            supervisor = self.directory.primary_supervisor(report.employee_id, report.activity_date)
            if supervisor is None:
                logger.info("submission_notice_skipped", report_id=report.id, reason="no_active_supervisor")
                return
            phone = normalize_phone(supervisor.phone or "")
            if not phone:
                logger.info("submission_notice_skipped", report_id=report.id, reason="supervisor_has_no_phone")
                return
            message = build_submission_message(report, report.owner)
            metadata = NotificationMetadata(
                title="New activity report to review",
                report_id=report.id,
                link=f"/reports/{report.id}/verification",
                action_required=True,
            )
            self.dispatcher.dispatch(supervisor.id, phone, message, metadata)
        except Exception:
            logger.exception("submission_notice_failed", report_id=report.id)
