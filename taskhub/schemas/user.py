# taskhub/schemas/user.py
from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from taskhub.models.enums import UserRole
from taskhub.schemas.common import CamelModel, UTCDateTime, reject_nulls

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def _check_password(value: str) -> str:
    if len(value) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError("Password cannot exceed 72 bytes")
    return value


class UserCreate(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str
    department: Optional[str] = Field(default=None, max_length=30)

    @field_validator("name", "department", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password(v)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    department: Optional[str] = Field(default=None, max_length=30)
    avatar: Optional[str] = None

    @field_validator("name", "department", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def name_not_null(self):
        reject_nulls(self, ["name"])
        return self


class PasswordChange(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password(v)


class UserBrief(CamelModel):
    id: int
    name: str
    email: str
    avatar: Optional[str] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    department: Optional[str] = None
    avatar: Optional[str] = None
    created_at: UTCDateTime
    updated_at: Optional[UTCDateTime] = None
