from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class EducationalGroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    level: str = Field(min_length=1, max_length=100)

    @field_validator("name", "level")
    @classmethod
    def strip_value(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be empty")
        return trimmed


class EducationalGroupOut(BaseModel):
    id: str
    name: str
    level: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
