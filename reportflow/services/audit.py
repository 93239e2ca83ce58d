# reportflow/services/audit.py
# Persistent audit trail. Entries are written after the audited change has
# been committed; a failed write is logged and never undoes that change.
from __future__ import annotations

from typing import Any

import structlog
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from reportflow.core.enums import AuditAction
from reportflow.db import models

logger = structlog.get_logger("reportflow.audit")


def snapshot(row: Any) -> dict[str, Any] | None:
    """Column values of an ORM row in JSON-safe form."""
    if row is None:
        return None
    return jsonable_encoder({column.key: getattr(row, column.key) for column in row.__table__.columns})


class AuditTrail:
    def __init__(
        self,
        db: Session,
        endpoint: str | None = None,
        method: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ):
        self.db = db
        self.endpoint = endpoint
        self.method = method
        self.ip_address = ip_address
        self.user_agent = user_agent

    def record(
        self,
        actor_id: int | None,
        action: AuditAction | str,
        module: str,
        detail: str | None = None,
        before: Any = None,
        after: Any = None,
    ) -> models.ActivityLog | None:
        action = action.value if isinstance(action, AuditAction) else action
        try:
            entry = models.ActivityLog(
                employee_id=actor_id,
                action=action,
                module=module,
                detail=detail,
                data_before=before,
                data_after=after,
                ip_address=self.ip_address,
                user_agent=(self.user_agent or "")[:255] or None,
                endpoint=self.endpoint,
                method=self.method,
            )
            self.db.add(entry)
            self.db.commit()
            return entry
        except Exception:
            self.db.rollback()
            logger.exception("audit_write_failed", actor_id=actor_id, action=action, module=module)
            return None

    def entries(
        self,
        module: str | None = None,
        action: str | None = None,
        employee_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[models.ActivityLog]:
        query = self.db.query(models.ActivityLog)
        if module:
            query = query.filter(models.ActivityLog.module == module)
        if action:
            query = query.filter(models.ActivityLog.action == action)
        if employee_id is not None:
            query = query.filter(models.ActivityLog.employee_id == employee_id)
        return (
            query.order_by(models.ActivityLog.created_at.desc(), models.ActivityLog.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
