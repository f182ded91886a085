from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_admin
from app.models.teacher_quota import TeacherQuota
from app.models.user import User, UserRole
from app.schemas.quota import QuotaOut, QuotaResetOut
from app.services import quota as quota_service
from app.services.audit import log_activity

router = APIRouter()


@router.get("/quotas", response_model=list[QuotaOut])
def list_quotas(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[QuotaOut]:
    week = quota_service.current_iso_week()
    rows = db.execute(
        select(User, TeacherQuota)
        .join(TeacherQuota, TeacherQuota.user_id == User.id)
        .where(User.role == UserRole.teacher)
        .order_by(User.name, User.surname)
    ).all()
    return [
        QuotaOut(
            user_id=user.id,
            name=user.name,
            surname=user.surname,
            weekly_free_hours=quota.weekly_free_hours,
            substitutions_this_week=quota_service.used_this_week(quota, week),
            last_reset_week=quota.last_reset_week,
            remaining_hours=quota_service.remaining_capacity(quota, week),
        )
        for user, quota in rows
    ]


@router.post("/quotas/reset", response_model=QuotaResetOut)
def reset_weekly_counters(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> QuotaResetOut:
    week = quota_service.current_iso_week()
    reset_count = quota_service.reset_weekly_counters(db, week=week)
    if reset_count:
        log_activity(
            db,
            actor=current_user,
            action="quota.reset",
            entity_type="quota",
            details={"week": week, "reset_count": reset_count},
        )
    db.commit()
    return QuotaResetOut(week=week, reset_count=reset_count)


@router.post("/quotas/{teacher_id}/increment", status_code=status.HTTP_204_NO_CONTENT)
def increment_teacher_substitution(
    teacher_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Response:
    # Counters must belong to the current week before they are incremented.
    reset_count = quota_service.reset_weekly_counters(db, week=quota_service.current_iso_week())
    # Unknown teachers are logged by the service and otherwise ignored.
    incremented = quota_service.increment_substitution(db, teacher_id)
    if incremented:
        log_activity(db, actor=current_user, action="quota.increment", entity_type="quota", entity_id=teacher_id)
    if incremented or reset_count:
        db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
