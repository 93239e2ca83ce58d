# reportflow/api/v1/endpoints/reports.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from reportflow.core import security
from reportflow.db import models, session
from reportflow.dependencies import get_report_service, get_today
from reportflow.schemas import report as report_schema
from reportflow.services.report_store import ReportStore
from reportflow.services.reporting import ReportService
from reportflow.services.supervisor_directory import SupervisorDirectory

router = APIRouter()

@router.get("", response_model=List[report_schema.Report])
def list_my_reports(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """ The caller's own reports, newest activity date first. """
    return ReportStore(db).list_for_employees([current_user.id], start_date, end_date)

@router.get("/subordinates", response_model=List[report_schema.Report])
def list_subordinate_reports(
    on_date: date | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(session.get_db),
    today: date = Depends(get_today),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """
    Reports of everyone the caller supervises on `on_date` (default today).
    """
    subordinate_ids = SupervisorDirectory(db).active_subordinates_of(current_user.id, on_date or today)
    return ReportStore(db).list_for_employees(subordinate_ids, start_date, end_date)

@router.get("/{report_id}", response_model=report_schema.Report)
def read_report(
    report_id: int,
    service: ReportService = Depends(get_report_service),
    current_user: models.Employee = Depends(security.get_current_user)
):
    return service.get_visible(current_user, report_id)

@router.post("", response_model=report_schema.Report, status_code=status.HTTP_201_CREATED)
def create_report(
    report_in: report_schema.ReportCreate,
    service: ReportService = Depends(get_report_service),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """
    Creates a report as Draft, or Submitted when the submission rules pass.
    Submitting notifies the owner's primary supervisor.
    """
    fields = report_in.model_dump(exclude={"status"})
    return service.create(current_user, fields, report_in.status)

@router.put("/{report_id}", response_model=report_schema.Report)
def update_report(
    report_id: int,
    updates: report_schema.ReportUpdate,
    service: ReportService = Depends(get_report_service),
    current_user: models.Employee = Depends(security.get_current_user)
):
    return service.update(current_user, report_id, updates.model_dump(exclude_unset=True))

@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(
    report_id: int,
    service: ReportService = Depends(get_report_service),
    current_user: models.Employee = Depends(security.get_current_user)
):
    service.delete(current_user, report_id)
    return
