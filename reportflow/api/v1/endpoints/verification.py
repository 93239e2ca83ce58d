# reportflow/api/v1/endpoints/verification.py
from fastapi import APIRouter, Depends

from reportflow.core import security
from reportflow.core.enums import ReportStatus
from reportflow.db import models
from reportflow.dependencies import get_verification_orchestrator
from reportflow.schemas import report as report_schema
from reportflow.services.verification import VerificationOrchestrator

router = APIRouter()

RESULT_MESSAGES = {
    ReportStatus.VERIFIED: "Report verified",
    ReportStatus.NEEDS_REVISION: "Report returned for revision",
    ReportStatus.REJECTED: "Report rejected",
}

@router.get("/{report_id}/verification", response_model=report_schema.VerificationView)
def read_for_verification(
    report_id: int,
    orchestrator: VerificationOrchestrator = Depends(get_verification_orchestrator),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """
    Loads a report for the supervisor screen. Only a current supervisor of the
    owner gets through.
    """
    report = orchestrator.authorize(current_user.id, report_id)
    aggregate = orchestrator.recomputer.get_daily(report.employee_id, report.activity_date)
    return {"report": report, "daily_aggregate": aggregate}

@router.post("/{report_id}/verification", response_model=report_schema.VerificationResponse)
def verify_report(
    report_id: int,
    decision: report_schema.VerificationRequest,
    orchestrator: VerificationOrchestrator = Depends(get_verification_orchestrator),
    current_user: models.Employee = Depends(security.get_current_user)
):
    result = orchestrator.verify_report(
        current_user.id,
        report_id,
        decision.status,
        note=decision.note,
        rating=decision.rating,
        complete_flag=decision.is_complete,
    )
    return {
        "report": result.report,
        "daily_aggregate": result.aggregate,
        "message": RESULT_MESSAGES[ReportStatus(decision.status)],
    }
