# reportflow/schemas/notification.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

class Notification(BaseModel):
    id: int
    title: str
    message: str
    category: str
    report_id: Optional[int] = None
    link: Optional[str] = None
    action_required: bool
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationList(BaseModel):
    count: int
    unread: int
    items: List[Notification]
