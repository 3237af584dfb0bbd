from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, ValidationInfo, field_validator

MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 255


def _password_max_bytes(v: str) -> str:
    """Ensure password does not exceed bcrypt's 72-byte limit when UTF-8 encoded."""
    if len(v.encode("utf-8")) > 72:
        raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return v


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    password_confirmation: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_present(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"name may not be greater than {MAX_NAME_LENGTH} characters")
        return v

    @field_validator("password")
    @classmethod
    def password_rules(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        return _password_max_bytes(v)

    @field_validator("password_confirmation")
    @classmethod
    def confirmation_matches(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        # password is absent from info.data when it failed its own validation
        password = info.data.get("password")
        if v is not None and password is not None and v != password:
            raise ValueError("password confirmation does not match")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("password is required")
        return v


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    created_at: datetime


class AuthResult(BaseModel):
    user: UserOut
    token: str
