import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SubstitutionReason(str, Enum):
    unexpected_absence = "unexpected_absence"
    illness = "illness"
    personal_matters = "personal_matters"
    other = "other"


class LessonPeriod(str, Enum):
    first = "first"
    second = "second"
    third = "third"
    fourth = "fourth"
    fifth = "fifth"
    recess = "recess"
    reading_hour = "reading_hour"


class TransportDuty(str, Enum):
    entry = "entry"
    exit = "exit"
    none = "none"


class Substitution(Base):
    __tablename__ = "substitutions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    substitution_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    assigned_teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    absent_teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    group_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reason: Mapped[SubstitutionReason] = mapped_column(
        SAEnum(SubstitutionReason, name="substitution_reason"),
        nullable=False,
    )
    reason_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    period: Mapped[LessonPeriod | None] = mapped_column(
        SAEnum(LessonPeriod, name="lesson_period"),
        nullable=True,
    )
    transport_duty: Mapped[TransportDuty | None] = mapped_column(
        SAEnum(TransportDuty, name="transport_duty", native_enum=False, length=10),
        nullable=True,
    )
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confirmed_by_teacher: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
