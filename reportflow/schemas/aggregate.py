# reportflow/schemas/aggregate.py
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

class DailyAggregate(BaseModel):
    employee_id: int
    activity_date: date
    report_count: int = 0
    total_duration_minutes: int = 0
    verified_count: int = 0
    pending_count: int = 0
    rejected_count: int = 0
    productivity_percent: float = 0.0
    average_rating: float = 0.0
    is_complete: bool = False
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MonthlyAggregate(BaseModel):
    employee_id: int
    year: int
    month: int
    report_count: int = 0
    total_duration_minutes: int = 0
    average_reports_per_day: float = 0.0
    verified_count: int = 0
    pending_count: int = 0
    rejected_count: int = 0
    revision_count: int = 0
    verification_percent: float = 0.0
    average_rating: float = 0.0
    category_breakdown: Dict[str, int] = {}

    class Config:
        from_attributes = True

class TeamMemberDay(BaseModel):
    employee_id: int
    name: str | None
    aggregate: DailyAggregate

class TeamDay(BaseModel):
    activity_date: date
    members: List[TeamMemberDay]
