"""Weekly substitution quota tracking.

Every teacher has a ``TeacherQuota`` row holding the configured weekly free
hours and the number of substitutions covered in the ISO week stamped in
``last_reset_week``. Counters are reset lazily: any caller that needs current
numbers runs :func:`reset_weekly_counters` first, which only touches rows
stamped with an older week.
"""

from __future__ import annotations

from datetime import date, datetime
import logging
from zoneinfo import ZoneInfo

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.teacher_quota import TeacherQuota

logger = logging.getLogger(__name__)


def iso_week_of(value: datetime | date) -> str:
    year, week, _ = value.isocalendar()
    return f"{year}-W{week:02d}"


def school_now() -> datetime:
    return datetime.now(ZoneInfo(get_settings().school_timezone))


def school_today() -> date:
    return school_now().date()


def current_iso_week(now: datetime | date | None = None) -> str:
    return iso_week_of(now or school_now())


def used_this_week(quota: TeacherQuota, week: str) -> int:
    # A row stamped with another week has not been reset yet; nothing counts.
    if quota.last_reset_week != week:
        return 0
    return quota.substitutions_this_week


def remaining_capacity(quota: TeacherQuota, week: str) -> int:
    return quota.weekly_free_hours - used_this_week(quota, week)


def _run_quota_update(db: Session, statement) -> int:
    db.flush()
    result = db.execute(statement.execution_options(synchronize_session=False))
    # The UPDATE bypassed the identity map; reload any quota this session holds.
    for item in list(db.identity_map.values()):
        if isinstance(item, TeacherQuota):
            db.expire(item)
    return result.rowcount or 0


def create_quota(db: Session, *, user_id: str, weekly_free_hours: int | None = None) -> TeacherQuota:
    if weekly_free_hours is None:
        weekly_free_hours = get_settings().default_weekly_free_hours
    quota = TeacherQuota(
        user_id=user_id,
        weekly_free_hours=weekly_free_hours,
        substitutions_this_week=0,
        last_reset_week=None,
    )
    db.add(quota)
    return quota


def reset_weekly_counters(db: Session, *, week: str | None = None) -> int:
    """Zero every counter not yet stamped with ``week`` and stamp it.

    Idempotent within a week. Returns how many rows were reset.
    """
    week = week or current_iso_week()
    affected = _run_quota_update(
        db,
        update(TeacherQuota)
        .where(or_(TeacherQuota.last_reset_week.is_(None), TeacherQuota.last_reset_week != week))
        .values(substitutions_this_week=0, last_reset_week=week),
    )
    if affected:
        logger.info("Reset %s weekly substitution counter(s) for %s", affected, week)
    return affected


def increment_substitution(db: Session, teacher_id: str) -> bool:
    """Add one covered substitution to the teacher's weekly counter.

    There is no ceiling check here; capacity filtering belongs to the
    recommender and to :func:`consume_capacity`. An unknown teacher is logged
    and reported as ``False`` so the surrounding flow is not interrupted.
    """
    affected = _run_quota_update(
        db,
        update(TeacherQuota)
        .where(TeacherQuota.user_id == teacher_id)
        .values(substitutions_this_week=TeacherQuota.substitutions_this_week + 1),
    )
    if not affected:
        logger.warning("Cannot increment substitution counter: no quota for teacher %s", teacher_id)
        return False
    return True


def consume_capacity(db: Session, teacher_id: str, *, week: str) -> bool:
    """Atomically take one hour of the teacher's remaining weekly capacity.

    The capacity predicate and the increment are a single UPDATE, so two
    concurrent assignments can never push a counter past the weekly free
    hours. Returns ``False`` when the quota is missing, stale or exhausted.
    """
    affected = _run_quota_update(
        db,
        update(TeacherQuota)
        .where(
            TeacherQuota.user_id == teacher_id,
            TeacherQuota.last_reset_week == week,
            TeacherQuota.substitutions_this_week < TeacherQuota.weekly_free_hours,
        )
        .values(substitutions_this_week=TeacherQuota.substitutions_this_week + 1),
    )
    return affected == 1
