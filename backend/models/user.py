from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator
from models.common import Address, UserRole, UserStatus


class User(BaseModel):
    user_id:    str
    full_name:  str
    email:      str
    phone:      str
    role:       UserRole   = UserRole.SENDER
    status:     UserStatus = UserStatus.ACTIVE
    address:    Optional[Address] = None
    avatar:     Optional[str] = None
    # Timestamps
    created_at: datetime
    updated_at: datetime


class LoginRequest(BaseModel):
    email:    str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type:   str = "bearer"
    user:         User


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone:     Optional[str] = None
    address:   Optional[Address] = None
    avatar:    Optional[str] = None
    password:  Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v
