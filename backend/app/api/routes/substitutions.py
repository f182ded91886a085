from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.models.substitution import Substitution
from app.models.user import User, UserRole
from app.schemas.quota import RecommendationOut, RecommendedTeacherOut
from app.schemas.substitution import (
    SubstitutionConfirmationOut,
    SubstitutionCreate,
    SubstitutionOut,
    SubstitutionUpdate,
)
from app.services import quota as quota_service
from app.services import substitutions as substitution_service
from app.services.audit import log_activity
from app.services.recommender import recommend_teacher

router = APIRouter()


def _get_substitution_or_404(db: Session, substitution_id: str) -> Substitution:
    record = db.get(Substitution, substitution_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Substitution not found")
    return record


def _get_own_substitution(db: Session, substitution_id: str, current_user: User) -> Substitution:
    record = _get_substitution_or_404(db, substitution_id)
    if record.assigned_teacher_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Substitution is assigned to another teacher")
    return record


@router.get("/substitutions", response_model=list[SubstitutionOut])
def list_substitutions(
    on_date: date | None = Query(default=None, alias="date"),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[SubstitutionOut]:
    if on_date is not None:
        start = end = on_date
    if start is not None and end is not None and start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end")

    teacher_id = None if current_user.role == UserRole.admin else current_user.id
    records = substitution_service.list_substitutions(db, start=start, end=end, teacher_id=teacher_id)
    return substitution_service.hydrate_substitutions(db, records)


@router.get("/substitutions/recommended-teacher", response_model=RecommendationOut)
def get_recommended_teacher(
    absent_teacher_id: str | None = Query(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> RecommendationOut:
    week = quota_service.current_iso_week()
    # Bring stored counters to the current week before reporting them.
    if quota_service.reset_weekly_counters(db, week=week):
        db.commit()
    candidate = recommend_teacher(db, week=week, exclude_ids=[absent_teacher_id] if absent_teacher_id else [])
    if candidate is None:
        return RecommendationOut(available=False, week=week, teacher=None)
    return RecommendationOut(
        available=True,
        week=week,
        teacher=RecommendedTeacherOut(
            user_id=candidate.user_id,
            name=candidate.name,
            surname=candidate.surname,
            weekly_free_hours=candidate.weekly_free_hours,
            substitutions_this_week=candidate.substitutions_this_week,
            remaining_hours=candidate.remaining_hours,
        ),
    )


@router.get("/substitutions/pending", response_model=list[SubstitutionOut])
def list_my_pending_substitutions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[SubstitutionOut]:
    records = substitution_service.list_pending_for_teacher(
        db,
        current_user.id,
        today=quota_service.school_today(),
    )
    return substitution_service.hydrate_substitutions(db, records)


@router.get("/substitutions/confirmations", response_model=list[SubstitutionConfirmationOut])
def list_substitution_confirmations(
    on_date: date | None = Query(default=None, alias="date"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[SubstitutionConfirmationOut]:
    return substitution_service.confirmations_for_date(db, on_date or quota_service.school_today())


@router.post("/substitutions", response_model=SubstitutionOut, status_code=status.HTTP_201_CREATED)
def create_substitution(
    payload: SubstitutionCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    week = quota_service.current_iso_week()
    record = substitution_service.create_substitution(db, payload, actor=current_user, week=week)
    log_activity(
        db,
        actor=current_user,
        action="substitution.create",
        entity_type="substitution",
        entity_id=record.id,
        details={
            "assigned_teacher_id": record.assigned_teacher_id,
            "auto_assigned": payload.assigned_teacher_id is None,
            "substitution_date": record.substitution_date.isoformat(),
            "week": week,
        },
    )
    db.commit()
    db.refresh(record)
    return substitution_service.hydrate_substitutions(db, [record])[0]


@router.get("/substitutions/{substitution_id}", response_model=SubstitutionOut)
def get_substitution(
    substitution_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    if current_user.role == UserRole.admin:
        record = _get_substitution_or_404(db, substitution_id)
    else:
        record = _get_own_substitution(db, substitution_id, current_user)
    return substitution_service.hydrate_substitutions(db, [record])[0]


@router.put("/substitutions/{substitution_id}", response_model=SubstitutionOut)
def update_substitution(
    substitution_id: str,
    payload: SubstitutionUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    record = _get_substitution_or_404(db, substitution_id)
    changes = substitution_service.update_substitution(db, record, payload)
    if changes:
        log_activity(
            db,
            actor=current_user,
            action="substitution.update",
            entity_type="substitution",
            entity_id=record.id,
            details={"fields": sorted(changes)},
        )
    db.commit()
    db.refresh(record)
    return substitution_service.hydrate_substitutions(db, [record])[0]


@router.delete("/substitutions/{substitution_id}")
def delete_substitution(
    substitution_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    record = _get_substitution_or_404(db, substitution_id)
    # Deleting does not give the hour back to the teacher's weekly quota.
    log_activity(
        db,
        actor=current_user,
        action="substitution.delete",
        entity_type="substitution",
        entity_id=record.id,
        details={"assigned_teacher_id": record.assigned_teacher_id},
    )
    db.delete(record)
    db.commit()
    return {"success": True}


@router.post("/substitutions/{substitution_id}/seen", response_model=SubstitutionOut)
def mark_substitution_seen(
    substitution_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    record = _get_own_substitution(db, substitution_id, current_user)
    if not record.seen:
        record.seen = True
        db.commit()
        db.refresh(record)
    return substitution_service.hydrate_substitutions(db, [record])[0]


@router.post("/substitutions/{substitution_id}/confirm", response_model=SubstitutionOut)
def confirm_substitution(
    substitution_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    record = _get_own_substitution(db, substitution_id, current_user)
    if not record.confirmed_by_teacher:
        record.confirmed_by_teacher = True
        record.seen = True
        log_activity(
            db,
            actor=current_user,
            action="substitution.confirm",
            entity_type="substitution",
            entity_id=record.id,
        )
        db.commit()
        db.refresh(record)
    return substitution_service.hydrate_substitutions(db, [record])[0]
