from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TeacherQuota(Base):
    __tablename__ = "teacher_quotas"
    __table_args__ = (
        CheckConstraint("weekly_free_hours >= 0", name="ck_teacher_quotas_free_hours_non_negative"),
        CheckConstraint("substitutions_this_week >= 0", name="ck_teacher_quotas_counter_non_negative"),
    )

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    weekly_free_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    substitutions_this_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # ISO week marker such as "2024-W11"; NULL means never reset.
    last_reset_week: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
