# reportflow/api/v1/endpoints/dashboard.py
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from reportflow.core import security
from reportflow.core.errors import NotAuthorized
from reportflow.db import models, session
from reportflow.dependencies import get_today
from reportflow.schemas import aggregate as aggregate_schema
from reportflow.services.aggregates import AggregateRecomputer
from reportflow.services.reporting import is_admin
from reportflow.services.supervisor_directory import SupervisorDirectory

router = APIRouter()


# --- Helper Function for access checks ---

def resolve_target(db: Session, current_user: models.Employee, employee_id: int | None, today: date) -> int:
    """Own data by default; someone else's only for an admin or their current supervisor."""
    if employee_id is None or employee_id == current_user.id:
        return current_user.id
    if is_admin(current_user):
        return employee_id
    if SupervisorDirectory(db).is_supervisor_of(current_user.id, employee_id, today):
        return employee_id
    raise NotAuthorized("You do not have access to this employee's statistics")


def daily_or_empty(recomputer: AggregateRecomputer, employee_id: int, day: date) -> aggregate_schema.DailyAggregate:
    row = recomputer.get_daily(employee_id, day)
    if row is None:
        return aggregate_schema.DailyAggregate(employee_id=employee_id, activity_date=day)
    return aggregate_schema.DailyAggregate.model_validate(row)


# --- API Endpoints ---

@router.get("/daily", response_model=aggregate_schema.DailyAggregate)
def get_daily_stats(
    day: date | None = None,
    employee_id: int | None = None,
    db: Session = Depends(session.get_db),
    today: date = Depends(get_today),
    current_user: models.Employee = Depends(security.get_current_user)
):
    target = resolve_target(db, current_user, employee_id, today)
    return daily_or_empty(AggregateRecomputer(db), target, day or today)

@router.get("/monthly", response_model=aggregate_schema.MonthlyAggregate)
def get_monthly_stats(
    year: int | None = Query(default=None, ge=2000, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    employee_id: int | None = None,
    db: Session = Depends(session.get_db),
    today: date = Depends(get_today),
    current_user: models.Employee = Depends(security.get_current_user)
):
    target = resolve_target(db, current_user, employee_id, today)
    year, month = year or today.year, month or today.month
    row = AggregateRecomputer(db).get_monthly(target, year, month)
    if row is None:
        return aggregate_schema.MonthlyAggregate(employee_id=target, year=year, month=month)
    return row

@router.get("/team", response_model=aggregate_schema.TeamDay)
def get_team_day(
    on_date: date | None = None,
    db: Session = Depends(session.get_db),
    today: date = Depends(get_today),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """
    One daily aggregate per employee the caller supervises on `on_date`.
    """
    day = on_date or today
    subordinate_ids = sorted(SupervisorDirectory(db).active_subordinates_of(current_user.id, day))
    recomputer = AggregateRecomputer(db)

    members = []
    for employee_id in subordinate_ids:
        employee = db.get(models.Employee, employee_id)
        members.append(aggregate_schema.TeamMemberDay(
            employee_id=employee_id,
            name=employee.full_name if employee else None,
            aggregate=daily_or_empty(recomputer, employee_id, day),
        ))
    return aggregate_schema.TeamDay(activity_date=day, members=members)
