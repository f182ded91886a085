from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.substitution import Substitution
from app.models.teacher_quota import TeacherQuota
from app.models.user import User, UserRole
from app.schemas.report import ReasonCount, StatisticsOut, TeacherStatsOut
from app.services.quota import used_this_week


def _count_since(db: Session, since: date | None = None) -> int:
    query = select(func.count(Substitution.id))
    if since is not None:
        query = query.where(Substitution.substitution_date >= since)
    return int(db.execute(query).scalar_one())


def build_statistics(db: Session, *, today: date, week: str) -> StatisticsOut:
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)

    by_reason = [
        ReasonCount(reason=reason.value, count=int(count))
        for reason, count in db.execute(
            select(Substitution.reason, func.count(Substitution.id))
            .group_by(Substitution.reason)
            .order_by(func.count(Substitution.id).desc())
        ).all()
    ]

    totals = dict(
        db.execute(
            select(Substitution.assigned_teacher_id, func.count(Substitution.id)).group_by(
                Substitution.assigned_teacher_id
            )
        ).all()
    )
    teachers = [
        TeacherStatsOut(
            user_id=user.id,
            name=user.name,
            surname=user.surname,
            weekly_free_hours=quota.weekly_free_hours,
            substitutions_this_week=used_this_week(quota, week),
            total_substitutions=int(totals.get(user.id, 0)),
        )
        for user, quota in db.execute(
            select(User, TeacherQuota)
            .join(TeacherQuota, TeacherQuota.user_id == User.id)
            .where(User.role == UserRole.teacher)
            .order_by(User.name, User.surname)
        ).all()
    ]

    return StatisticsOut(
        week=week,
        total_substitutions=_count_since(db),
        this_week=_count_since(db, week_start),
        this_month=_count_since(db, month_start),
        by_reason=by_reason,
        teachers=teachers,
    )
