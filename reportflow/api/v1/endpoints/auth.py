# reportflow/api/v1/endpoints/auth.py
import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session

from reportflow.core import security
from reportflow.db import models, session
from reportflow.schemas import token as token_schema

router = APIRouter()
logger = structlog.get_logger("reportflow.auth")

@router.post("/token", response_model=token_schema.Token)
def issue_token(db: Session = Depends(session.get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    """ Exchanges an email and password for a bearer token. Emails match case-insensitively. """
    email = form_data.username.strip().lower()
    employee = db.query(models.Employee).filter(func.lower(models.Employee.email) == email).first()
    if employee is None or not security.verify_password(form_data.password, employee.hashed_password):
        logger.info("login_rejected", email=email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("login_succeeded", employee_id=employee.id)
    return {"access_token": security.create_access_token(data={"sub": employee.email}), "token_type": "bearer"}
