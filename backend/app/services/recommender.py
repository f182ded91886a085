from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.teacher_quota import TeacherQuota
from app.models.user import User, UserRole
from app.services.quota import used_this_week


@dataclass(frozen=True)
class QuotaSnapshot:
    user_id: str
    name: str
    surname: str
    weekly_free_hours: int
    substitutions_this_week: int

    @property
    def remaining_hours(self) -> int:
        return self.weekly_free_hours - self.substitutions_this_week


def select_least_loaded(snapshots: Iterable[QuotaSnapshot]) -> QuotaSnapshot | None:
    """Pick the teacher with the most weekly capacity left.

    Teachers at or over their weekly free hours (including those configured
    with zero free hours) are never chosen. Equal remaining capacity is broken
    by the lowest ``user_id``.
    """
    eligible = [item for item in snapshots if item.remaining_hours > 0]
    if not eligible:
        return None
    return min(eligible, key=lambda item: (-item.remaining_hours, item.user_id))


def load_snapshots(db: Session, *, week: str, exclude_ids: Iterable[str] = ()) -> list[QuotaSnapshot]:
    excluded = {item for item in exclude_ids if item}
    rows = db.execute(
        select(User, TeacherQuota)
        .join(TeacherQuota, TeacherQuota.user_id == User.id)
        .where(User.role == UserRole.teacher, User.is_active.is_(True))
        .order_by(User.id)
    ).all()
    return [
        QuotaSnapshot(
            user_id=user.id,
            name=user.name,
            surname=user.surname,
            weekly_free_hours=quota.weekly_free_hours,
            substitutions_this_week=used_this_week(quota, week),
        )
        for user, quota in rows
        if user.id not in excluded
    ]


def recommend_teacher(db: Session, *, week: str, exclude_ids: Iterable[str] = ()) -> QuotaSnapshot | None:
    """Recommend a substitute for ``week`` without mutating any quota.

    Callers wanting stored counters to match ``week`` run
    ``reset_weekly_counters`` first; stale rows already read as zero used.
    """
    return select_least_loaded(load_snapshots(db, week=week, exclude_ids=exclude_ids))
