from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.user import UserRole
from app.schemas.common import normalize_optional_text


class TeacherBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    surname: str = Field(default="", max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("surname")
    @classmethod
    def normalize_surname(cls, value: str) -> str:
        return value.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class TeacherCreate(TeacherBase):
    weekly_free_hours: int | None = Field(default=None, ge=0, le=40)


class TeacherUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    surname: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None
    weekly_free_hours: int | None = Field(default=None, ge=0, le=40)

    @field_validator("name", "surname")
    @classmethod
    def strip_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class TeacherOut(BaseModel):
    id: str
    name: str
    surname: str
    email: str
    phone: str | None = None
    role: UserRole
    is_active: bool
    weekly_free_hours: int
    substitutions_this_week: int
    last_reset_week: str | None = None
    remaining_hours: int
    created_at: datetime | None = None
