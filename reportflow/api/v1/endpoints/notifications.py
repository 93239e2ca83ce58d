# reportflow/api/v1/endpoints/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reportflow.core import security
from reportflow.db import models, session
from reportflow.schemas import notification as notification_schema
from reportflow.services.notifications import NotificationInbox

router = APIRouter()

@router.get("", response_model=notification_schema.NotificationList)
def list_notifications(
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    items = NotificationInbox(db).list_for(current_user.id)
    return {"count": len(items), "unread": sum(1 for n in items if not n.is_read), "items": items}

@router.post("/{notification_id}/read", response_model=notification_schema.Notification)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    notification = NotificationInbox(db).mark_read(current_user.id, notification_id)
    db.commit()
    db.refresh(notification)
    return notification

@router.post("/read-all")
def mark_all_notifications_read(
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    updated = NotificationInbox(db).mark_all_read(current_user.id)
    db.commit()
    return {"updated": updated}
