"""
Best-effort notification delivery.

``NotificationDispatcher.dispatch`` only schedules work on a task runner and
returns. The deferred unit sends the external message, appends a delivery log
entry whatever the outcome, and records an in-app notification when the send
succeeded and metadata was given. Nothing is retried and nothing survives a
restart; every failure inside the unit is logged and swallowed, since no
caller is waiting for it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

import structlog
from fastapi import BackgroundTasks
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session, sessionmaker

from reportflow.core.config import settings
from reportflow.core.enums import DeliveryOutcome, NotificationCategory, ReportStatus
from reportflow.core.errors import NotFound
from reportflow.db import models
from reportflow.db.models import utc_now
from reportflow.services.messaging import MessageSender, SendResult

logger = structlog.get_logger("reportflow.notifications")

LOG_MESSAGE_LIMIT = 500


class TaskRunner(Protocol):
    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        ...


class BackgroundTaskRunner:
    """Runs submitted work after the HTTP response has been sent."""

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self.background_tasks.add_task(fn, *args, **kwargs)


@dataclass(frozen=True)
class NotificationMetadata:
    title: str = "System notification"
    category: NotificationCategory = NotificationCategory.INFO
    report_id: int | None = None
    link: str | None = None
    action_required: bool = False


class NotificationDispatcher:
    def __init__(
        self,
        session_factory: sessionmaker,
        sender: MessageSender,
        runner: TaskRunner,
        in_app_on_delivery_failure: bool | None = None,
    ):
        self.session_factory = session_factory
        self.sender = sender
        self.runner = runner
        if in_app_on_delivery_failure is None:
            in_app_on_delivery_failure = settings.NOTIFY_IN_APP_ON_DELIVERY_FAILURE
        self.in_app_on_delivery_failure = in_app_on_delivery_failure

    def dispatch(
        self,
        employee_id: int,
        phone: str,
        message: str,
        metadata: NotificationMetadata | None = None,
    ) -> None:
        self.runner.submit(self.deliver, employee_id, phone, message, metadata)
        logger.info("notification_queued", employee_id=employee_id, phone=phone)

    async def deliver(
        self,
        employee_id: int,
        phone: str,
        message: str,
        metadata: NotificationMetadata | None = None,
    ) -> None:
        try:
            result = await self.sender.send(phone, message)
        except Exception as exc:
            logger.exception("notification_send_crashed", employee_id=employee_id, phone=phone)
            result = SendResult(False, str(exc) or exc.__class__.__name__)

        # Session work is blocking; keep it off the event loop.
        await run_in_threadpool(self._log_delivery, employee_id, phone, message, result)

        if metadata is None:
            return
        if result.success or self.in_app_on_delivery_failure:
            await run_in_threadpool(self._record_notification, employee_id, message, metadata)
        else:
            logger.warning("notification_not_recorded", employee_id=employee_id, error=result.error)

    def _log_delivery(self, employee_id: int, phone: str, message: str, result: SendResult) -> None:
        outcome = DeliveryOutcome.SENT if result.success else DeliveryOutcome.FAILED
        try:
            with self.session_factory() as db:
                db.add(
                    models.DeliveryLog(
                        employee_id=employee_id,
                        phone=phone,
                        message=message[:LOG_MESSAGE_LIMIT],
                        outcome=outcome.value,
                        error_message=result.error,
                    )
                )
                db.commit()
        except Exception:
            logger.exception("delivery_log_failed", employee_id=employee_id, outcome=outcome.value)

    def _record_notification(self, employee_id: int, message: str, metadata: NotificationMetadata) -> None:
        try:
            with self.session_factory() as db:
                db.add(
                    models.Notification(
                        employee_id=employee_id,
                        title=metadata.title,
                        message=message,
                        category=metadata.category.value,
                        report_id=metadata.report_id,
                        link=metadata.link,
                        action_required=metadata.action_required,
                    )
                )
                db.commit()
            logger.info("notification_recorded", employee_id=employee_id, category=metadata.category.value)
        except Exception:
            logger.exception("notification_record_failed", employee_id=employee_id)


# --- Message bodies ---

STATUS_HEADLINES = {
    ReportStatus.VERIFIED: "REPORT VERIFIED",
    ReportStatus.REJECTED: "REPORT REJECTED",
    ReportStatus.NEEDS_REVISION: "REPORT NEEDS REVISION",
}
STATUS_CATEGORIES = {
    ReportStatus.VERIFIED: NotificationCategory.VERIFIED,
    ReportStatus.REJECTED: NotificationCategory.REJECTED,
    ReportStatus.NEEDS_REVISION: NotificationCategory.COMMENT,
}


def build_verification_message(
    report: models.ActivityReport,
    verifier: models.Employee,
    status: ReportStatus,
    note: str | None,
    rating: float | None,
    alias: str | None = None,
) -> str:
    alias = alias or settings.APP_ALIAS
    lines = [
        f"*{STATUS_HEADLINES[status]}*",
        "",
        "*Activity*",
        report.name,
        f"Date: {report.activity_date.isoformat()}",
        "",
        "*Verified by*",
        verifier.full_name or verifier.email,
    ]
    if rating is not None:
        lines += ["", f"*Quality rating*: {rating:g}/5"]
    if note:
        lines += ["", "*Note*", note]
    if status is ReportStatus.NEEDS_REVISION:
        lines += ["", f"Please revise and resubmit the report in {alias}."]
    lines += ["", f"_Report ID: #{report.id}_", "", f"_Automated message from {alias}_"]
    return "\n".join(lines)


def build_submission_message(
    report: models.ActivityReport,
    owner: models.Employee,
    alias: str | None = None,
) -> str:
    alias = alias or settings.APP_ALIAS
    description = report.description
    if len(description) > 150:
        description = description[:150] + "..."
    lines = [
        "*NEW ACTIVITY REPORT*",
        "",
        "A report from your team is waiting for review.",
        "",
        "*Employee*",
        owner.full_name or owner.email,
        "",
        "*Activity*",
        report.name,
        f"Category: {report.category}",
        "",
        "*Date*",
        report.activity_date.isoformat(),
        "",
        "*Time*",
        f"{report.start_time.strftime('%H:%M')} - {report.end_time.strftime('%H:%M')}",
    ]
    if report.location:
        lines += ["", "*Location*", report.location]
    lines += [
        "",
        "*Description*",
        description,
        "",
        f"Please sign in to {alias} to review this report.",
        "",
        f"_Report ID: #{report.id}_",
        "",
        f"_Automated message from {alias}_",
    ]
    return "\n".join(lines)


# --- In-app inbox ---

class NotificationInbox:
    def __init__(self, db: Session):
        self.db = db

    def list_for(self, employee_id: int) -> list[models.Notification]:
        return (
            self.db.query(models.Notification)
            .filter(models.Notification.employee_id == employee_id)
            .order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
            .all()
        )

    def mark_read(self, employee_id: int, notification_id: int) -> models.Notification:
        notification = self.db.get(models.Notification, notification_id)
        if notification is None or notification.employee_id != employee_id:
            raise NotFound(f"Notification {notification_id} not found")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
        self.db.flush()
        return notification

    def mark_all_read(self, employee_id: int) -> int:
        unread = (
            self.db.query(models.Notification)
            .filter(models.Notification.employee_id == employee_id, models.Notification.is_read.is_(False))
            .all()
        )
        now = utc_now()
        for notification in unread:
            notification.is_read = True
            notification.read_at = now
        self.db.flush()
        return len(unread)
