"""
Request-scoped collaborators for the report endpoints.

Tests override ``get_today``, ``get_message_sender`` and the session
dependencies to pin the clock and capture outbound messages.
"""
from datetime import date

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from reportflow.db.session import get_db, get_session_factory
from reportflow.services.audit import AuditTrail
from reportflow.services.messaging import MessageSender, get_message_sender
from reportflow.services.notifications import BackgroundTaskRunner, NotificationDispatcher
from reportflow.services.reporting import ReportService
from reportflow.services.verification import VerificationOrchestrator


def get_today() -> date:
    return date.today()


def get_audit_trail(request: Request, db: Session = Depends(get_db)) -> AuditTrail:
    return AuditTrail(
        db,
        endpoint=request.url.path,
        method=request.method,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_dispatcher(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
    sender: MessageSender = Depends(get_message_sender),
) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, sender, BackgroundTaskRunner(background_tasks))


def get_report_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    today: date = Depends(get_today),
    audit: AuditTrail = Depends(get_audit_trail),
) -> ReportService:
    return ReportService(db, dispatcher=dispatcher, today=lambda: today, audit=audit)


def get_verification_orchestrator(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    today: date = Depends(get_today),
    audit: AuditTrail = Depends(get_audit_trail),
) -> VerificationOrchestrator:
    return VerificationOrchestrator(db, dispatcher=dispatcher, today=lambda: today, audit=audit)
