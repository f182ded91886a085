from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.substitution import LessonPeriod, SubstitutionReason, TransportDuty
from app.schemas.common import TIME_PATTERN, normalize_optional_text, parse_time_to_minutes


def _validate_time(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class SubstitutionCreate(BaseModel):
    substitution_date: date
    start_time: str
    end_time: str
    # Omit to let the service pick the least-loaded teacher.
    assigned_teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    absent_teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    group_id: str | None = Field(default=None, min_length=1, max_length=36)
    reason: SubstitutionReason = SubstitutionReason.unexpected_absence
    reason_other: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)
    period: LessonPeriod | None = None
    transport_duty: TransportDuty | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _validate_time(value)

    @field_validator("reason_other", "notes")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)

    @model_validator(mode="after")
    def validate_consistency(self) -> "SubstitutionCreate":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.reason == SubstitutionReason.other and not self.reason_other:
            raise ValueError("reason_other is required when reason is 'other'")
        if self.reason != SubstitutionReason.other:
            self.reason_other = None
        if (
            self.assigned_teacher_id is not None
            and self.absent_teacher_id is not None
            and self.assigned_teacher_id == self.absent_teacher_id
        ):
            raise ValueError("The assigned teacher cannot be the absent teacher")
        return self


class SubstitutionUpdate(BaseModel):
    substitution_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    assigned_teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    absent_teacher_id: str | None = Field(default=None, max_length=36)
    group_id: str | None = Field(default=None, max_length=36)
    reason: SubstitutionReason | None = None
    reason_other: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)
    period: LessonPeriod | None = None
    transport_duty: TransportDuty | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return _validate_time(value)

    @field_validator("reason_other", "notes", "absent_teacher_id", "group_id")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return normalize_optional_text(value)


class SubstitutionOut(BaseModel):
    id: str
    substitution_date: date
    start_time: str
    end_time: str
    assigned_teacher_id: str
    assigned_teacher_name: str | None = None
    absent_teacher_id: str | None = None
    absent_teacher_name: str | None = None
    group_id: str | None = None
    group_name: str | None = None
    reason: SubstitutionReason
    reason_other: str | None = None
    notes: str | None = None
    period: LessonPeriod | None = None
    transport_duty: TransportDuty | None = None
    seen: bool
    confirmed_by_teacher: bool
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubstitutionConfirmationOut(BaseModel):
    substitution_id: str
    teacher_id: str
    teacher_name: str | None = None
    group_name: str | None = None
    start_time: str
    end_time: str
    seen: bool
    confirmed: bool
