"""
Supervisor directory: who supervises whom, as of a given date.

A relation authorizes verification on ``on_date`` only when it is active and
its window covers that date (``start_date <= on_date`` and ``end_date`` open
or ``>= on_date``). Reporting lines change over time, so callers always pass
the date they are asking about.
"""
from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from sqlalchemy import and_, case, or_
from sqlalchemy.orm import Query, Session

from reportflow.core.enums import RelationKind
from reportflow.core.errors import InvalidInput, NotFound
from reportflow.db import models

logger = structlog.get_logger("reportflow.supervisors")

NON_NULL_FIELDS = ("employee_id", "supervisor_id", "kind", "is_active", "start_date")


class SupervisorDirectory:
    def __init__(self, db: Session):
        self.db = db

    def _active_on(self, on_date: date) -> Query:
        rel = models.SupervisorRelation
        return self.db.query(rel).filter(
            rel.is_active.is_(True),
            rel.start_date <= on_date,
            or_(rel.end_date.is_(None), rel.end_date >= on_date),
        )

    def active_subordinates_of(self, supervisor_id: int, on_date: date) -> set[int]:
        rows = self._active_on(on_date).filter(models.SupervisorRelation.supervisor_id == supervisor_id).all()
        return {row.employee_id for row in rows}

    def is_supervisor_of(self, supervisor_id: int, employee_id: int, on_date: date) -> bool:
        return (
            self._active_on(on_date)
            .filter(
                models.SupervisorRelation.supervisor_id == supervisor_id,
                models.SupervisorRelation.employee_id == employee_id,
            )
            .first()
            is not None
        )

    def primary_supervisor(self, employee_id: int, on_date: date) -> models.Employee | None:
        """Direct supervisors win over indirect ones, then the latest start."""
        rel = models.SupervisorRelation
        relation = (
            self._active_on(on_date)
            .filter(rel.employee_id == employee_id)
            .order_by(
                case((rel.kind == RelationKind.DIRECT.value, 0), else_=1),
                rel.start_date.desc(),
                rel.created_at.desc(),
            )
            .first()
        )
        return relation.supervisor if relation else None

    def has_duplicate_active(
        self, employee_id: int, supervisor_id: int, excluding_relation_id: int | None = None
    ) -> bool:
        """An active relation already links the two people, in either direction."""
        rel = models.SupervisorRelation
        query = self.db.query(rel).filter(
            or_(
                and_(rel.employee_id == employee_id, rel.supervisor_id == supervisor_id),
                and_(rel.employee_id == supervisor_id, rel.supervisor_id == employee_id),
            ),
            rel.is_active.is_(True),
        )
        if excluding_relation_id is not None:
            query = query.filter(rel.id != excluding_relation_id)
        return query.first() is not None

    # --- Administrative maintenance ---

    def get(self, relation_id: int) -> models.SupervisorRelation:
        relation = self.db.get(models.SupervisorRelation, relation_id)
        if relation is None:
            raise NotFound(f"Supervisor relation {relation_id} not found")
        return relation

    def _check(self, employee_id: int, supervisor_id: int, start: date, end: date | None) -> None:
        if employee_id == supervisor_id:
            raise InvalidInput("An employee cannot supervise themselves")
        if end is not None and end < start:
            raise InvalidInput("Relation end date must not precede its start date")
        for employee in (employee_id, supervisor_id):
            if self.db.get(models.Employee, employee) is None:
                raise NotFound(f"Employee {employee} not found")

    def create(self, fields: dict[str, Any]) -> models.SupervisorRelation:
        self._check(fields["employee_id"], fields["supervisor_id"], fields["start_date"], fields.get("end_date"))
        relation = models.SupervisorRelation(**fields)
        self.db.add(relation)
        self.db.flush()
        logger.info(
            "supervisor_relation_created",
            relation_id=relation.id,
            employee_id=relation.employee_id,
            supervisor_id=relation.supervisor_id,
        )
        return relation

    def check_changes(self, changes: dict[str, Any]) -> None:
        for name in NON_NULL_FIELDS:
            if name in changes and changes[name] is None:
                raise InvalidInput(f"{name} cannot be empty")

    def update(self, relation_id: int, changes: dict[str, Any]) -> models.SupervisorRelation:
        relation = self.get(relation_id)
        self.check_changes(changes)
        merged = {
            "employee_id": changes.get("employee_id", relation.employee_id),
            "supervisor_id": changes.get("supervisor_id", relation.supervisor_id),
            "start_date": changes.get("start_date", relation.start_date),
            "end_date": changes.get("end_date", relation.end_date),
        }
        self._check(merged["employee_id"], merged["supervisor_id"], merged["start_date"], merged["end_date"])
        for field, value in changes.items():
            setattr(relation, field, value)
        self.db.flush()
        logger.info("supervisor_relation_updated", relation_id=relation.id, fields=sorted(changes))
        return relation

    def delete(self, relation_id: int) -> None:
        relation = self.get(relation_id)
        self.db.delete(relation)
        self.db.flush()
        logger.info("supervisor_relation_deleted", relation_id=relation_id)
