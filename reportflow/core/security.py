# reportflow/core/security.py
# Password hashing, bearer tokens and the dependencies that resolve the acting employee.
from datetime import datetime, timedelta, timezone

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from reportflow.core.config import settings
from reportflow.core.enums import Role
from reportflow.db import models, session
from reportflow.schemas import token as token_schema

logger = structlog.get_logger("reportflow.auth")

# --- Passwords ---
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
def verify_password(plain: str, hashed: str) -> bool: return pwd_context.verify(plain, hashed)
def get_password_hash(pwd: str) -> str: return pwd_context.hash(pwd)

# --- Tokens ---
def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    claims = dict(data)
    lifetime = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> token_schema.TokenData:
    """Raises JWTError for a bad signature, an expired token or a missing subject."""
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if not payload.get("sub"):
        raise JWTError("token has no subject")
    return token_schema.TokenData(email=payload["sub"])

# --- Dependencies ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(session.get_db)) -> models.Employee:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token_data = decode_access_token(token)
    except JWTError as exc:
        logger.info("token_rejected", reason=str(exc))
        raise unauthorized

    employee = db.query(models.Employee).filter(models.Employee.email == token_data.email).first()
    if employee is None:
        raise unauthorized
    return employee

def get_current_admin_user(current_user: models.Employee = Depends(get_current_user)) -> models.Employee:
    # Supervisors are not a role; only account administration is gated here.
    if current_user.role != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator access required")
    return current_user
