# reportflow/schemas/user.py
from pydantic import BaseModel, EmailStr, field_validator
from typing import Literal, Optional

class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None

class UserCreate(UserBase):
    password: str
    role: Literal["employee", "admin"] = "employee"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

class UserUpdate(BaseModel):
    role: Literal["employee", "admin"] | None = None
    title: str | None = None
    full_name: str | None = None
    phone: str | None = None

class User(UserBase):
    id: int
    role: str

    class Config:
        from_attributes = True
