# reportflow/api/v1/endpoints/users.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from reportflow.core import security
from reportflow.db import models, session
from reportflow.dependencies import get_today
from reportflow.schemas import user as user_schema
from reportflow.services.messaging import normalize_phone
from reportflow.services.supervisor_directory import SupervisorDirectory

router = APIRouter()

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)

@router.get("/me", response_model=user_schema.User)
def read_profile(current_user: models.Employee = Depends(security.get_current_user)):
    return current_user

@router.put("/me", response_model=user_schema.User)
def update_profile(
    updates: ProfileUpdate,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """
    Employees keep their own name and phone current. The phone number is where
    report notifications are delivered, so it must contain digits.
    """
    changes = updates.model_dump(exclude_unset=True)
    if changes.get("phone") and not normalize_phone(changes["phone"]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Phone number has no digits")

    for field, value in changes.items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user

@router.get("/me/supervisor", response_model=Optional[user_schema.User])
def read_my_supervisor(
    db: Session = Depends(session.get_db),
    today: date = Depends(get_today),
    current_user: models.Employee = Depends(security.get_current_user)
):
    """ The supervisor who receives this employee's submissions today, if any. """
    return SupervisorDirectory(db).primary_supervisor(current_user.id, today)

@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    passwords: PasswordChange,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_user)
):
    if not security.verify_password(passwords.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is wrong")

    current_user.hashed_password = security.get_password_hash(passwords.new_password)
    db.commit()
