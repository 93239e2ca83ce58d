# reportflow/schemas/report.py
from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from reportflow.schemas.aggregate import DailyAggregate

def _strip(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value

class ReportFields(BaseModel):
    activity_date: date
    category: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    target_output: Optional[str] = None
    result_output: Optional[str] = None
    start_time: time
    end_time: time
    location: Optional[str] = None
    obstacles: Optional[str] = None
    solution: Optional[str] = None

    @field_validator("target_output", "result_output", "location", "obstacles", "solution", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _strip(value)

    @field_validator("name", "description", "category")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

class ReportCreate(ReportFields):
    status: Literal["Draft", "Submitted"] = "Draft"

class ReportUpdate(BaseModel):
    activity_date: Optional[date] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    target_output: Optional[str] = None
    result_output: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    obstacles: Optional[str] = None
    solution: Optional[str] = None
    status: Optional[Literal["Draft", "Submitted"]] = None

    @field_validator("target_output", "result_output", "location", "obstacles", "solution", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _strip(value)

    @field_validator("name", "description", "category")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("must not be blank")
        return value.strip() if value is not None else None

class Report(ReportFields):
    id: int
    employee_id: int
    duration_minutes: int
    status: str
    submitted_at: Optional[datetime] = None
    verifier_id: Optional[int] = None
    verified_at: Optional[datetime] = None
    verification_note: Optional[str] = None
    quality_rating: Optional[float] = None
    is_edited: bool
    edit_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class VerificationRequest(BaseModel):
    status: Literal["Verified", "Rejected", "NeedsRevision"]
    note: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    is_complete: Optional[bool] = None

class VerificationView(BaseModel):
    report: Report
    daily_aggregate: Optional[DailyAggregate] = None

class VerificationResponse(VerificationView):
    message: str
