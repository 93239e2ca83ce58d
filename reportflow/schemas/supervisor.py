# reportflow/schemas/supervisor.py
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel

class RelationBase(BaseModel):
    employee_id: int
    supervisor_id: int
    kind: Literal["Direct", "Indirect"] = "Direct"
    is_active: bool = True
    start_date: date
    end_date: Optional[date] = None
    note: Optional[str] = None

class RelationCreate(RelationBase):
    pass

class RelationUpdate(BaseModel):
    employee_id: Optional[int] = None
    supervisor_id: Optional[int] = None
    kind: Optional[Literal["Direct", "Indirect"]] = None
    is_active: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    note: Optional[str] = None

class Relation(RelationBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
