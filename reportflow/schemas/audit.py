# reportflow/schemas/audit.py
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

class ActivityLog(BaseModel):
    id: int
    employee_id: Optional[int] = None
    action: str
    module: str
    detail: Optional[str] = None
    data_before: Optional[Any] = None
    data_after: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    endpoint: Optional[str] = None
    method: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
