# reportflow/services/aggregates.py
# Derived per-employee summaries, rebuilt from the report rows they cover.
from __future__ import annotations

import calendar
from collections import Counter
from datetime import date

import structlog
from sqlalchemy.orm import Session

from reportflow.core.enums import ReportStatus
from reportflow.db import models

logger = structlog.get_logger("reportflow.aggregates")

PENDING_STATUSES = {ReportStatus.DRAFT, ReportStatus.SUBMITTED, ReportStatus.NEEDS_REVISION}


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _average_rating(reports: list[models.ActivityReport]) -> float:
    rated = [r.quality_rating for r in reports if r.quality_rating is not None]
    return round(sum(rated) / len(rated), 2) if rated else 0.0


class AggregateRecomputer:
    """Recomputation is never triggered by the report store itself: every
    caller that creates, edits, re-dates, deletes or verifies a report must
    call :meth:`recompute_all` for each affected (employee, date)."""

    def __init__(self, db: Session):
        self.db = db

    def _reports(self, employee_id: int, start: date, end: date) -> list[models.ActivityReport]:
        return (
            self.db.query(models.ActivityReport)
            .filter(
                models.ActivityReport.employee_id == employee_id,
                models.ActivityReport.activity_date >= start,
                models.ActivityReport.activity_date <= end,
            )
            .all()
        )

    def get_daily(self, employee_id: int, day: date) -> models.DailyAggregate | None:
        return (
            self.db.query(models.DailyAggregate)
            .filter(models.DailyAggregate.employee_id == employee_id, models.DailyAggregate.activity_date == day)
            .first()
        )

    def _daily_row(self, employee_id: int, day: date) -> models.DailyAggregate:
        row = self.get_daily(employee_id, day)
        if row is None:
            row = models.DailyAggregate(employee_id=employee_id, activity_date=day, is_complete=False)
            self.db.add(row)
        return row

    def recompute(self, employee_id: int, day: date) -> models.DailyAggregate:
        reports = self._reports(employee_id, day, day)
        statuses = Counter(ReportStatus(r.status) for r in reports)

        verified = statuses[ReportStatus.VERIFIED]
        rejected = statuses[ReportStatus.REJECTED]
        pending = sum(statuses[s] for s in PENDING_STATUSES)

        row = self._daily_row(employee_id, day)
        row.report_count = len(reports)
        row.total_duration_minutes = sum(r.duration_minutes or 0 for r in reports)
        row.verified_count = verified
        row.pending_count = pending
        row.rejected_count = rejected
        row.productivity_percent = _percent(verified, verified + pending + rejected)
        row.average_rating = _average_rating(reports)
        self.db.flush()

        logger.debug(
            "daily_aggregate_recomputed",
            employee_id=employee_id,
            date=day.isoformat(),
            reports=row.report_count,
            productivity=row.productivity_percent,
        )
        return row

    def set_completion_flag(self, employee_id: int, day: date, complete: bool) -> models.DailyAggregate:
        row = self._daily_row(employee_id, day)
        row.is_complete = bool(complete)
        self.db.flush()
        return row

    def get_monthly(self, employee_id: int, year: int, month: int) -> models.MonthlyAggregate | None:
        return (
            self.db.query(models.MonthlyAggregate)
            .filter(
                models.MonthlyAggregate.employee_id == employee_id,
                models.MonthlyAggregate.year == year,
                models.MonthlyAggregate.month == month,
            )
            .first()
        )

    def recompute_month(self, employee_id: int, year: int, month: int) -> models.MonthlyAggregate:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        reports = self._reports(employee_id, first, last)
        statuses = Counter(ReportStatus(r.status) for r in reports)
        active_days = len({r.activity_date for r in reports})

        row = self.get_monthly(employee_id, year, month)
        if row is None:
            row = models.MonthlyAggregate(employee_id=employee_id, year=year, month=month)
            self.db.add(row)

        row.report_count = len(reports)
        row.total_duration_minutes = sum(r.duration_minutes or 0 for r in reports)
        row.average_reports_per_day = round(len(reports) / active_days, 2) if active_days else 0.0
        row.verified_count = statuses[ReportStatus.VERIFIED]
        row.pending_count = sum(statuses[s] for s in PENDING_STATUSES)
        row.rejected_count = statuses[ReportStatus.REJECTED]
        row.revision_count = statuses[ReportStatus.NEEDS_REVISION]
        row.verification_percent = _percent(row.verified_count, len(reports))
        row.average_rating = _average_rating(reports)
        row.category_breakdown = dict(Counter(r.category for r in reports))
        self.db.flush()
        return row

    def recompute_all(self, employee_id: int, day: date) -> models.DailyAggregate:
        """Rebuild the daily row and the month containing it."""
        daily = self.recompute(employee_id, day)
        self.recompute_month(employee_id, day.year, day.month)
        return daily
