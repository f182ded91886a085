from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.models.substitution import Substitution
from app.models.teacher_quota import TeacherQuota
from app.models.user import User, UserRole
from app.schemas.teacher import TeacherCreate, TeacherOut, TeacherUpdate
from app.services import quota as quota_service
from app.services.audit import log_activity

router = APIRouter()
SELF_EDITABLE_TEACHER_FIELDS = {"phone"}


def _teacher_out(user: User, quota: TeacherQuota | None, week: str) -> TeacherOut:
    weekly_free_hours = quota.weekly_free_hours if quota is not None else 0
    used = quota_service.used_this_week(quota, week) if quota is not None else 0
    return TeacherOut(
        id=user.id,
        name=user.name,
        surname=user.surname,
        email=user.email,
        phone=user.phone,
        role=user.role,
        is_active=user.is_active,
        weekly_free_hours=weekly_free_hours,
        substitutions_this_week=used,
        last_reset_week=quota.last_reset_week if quota is not None else None,
        remaining_hours=weekly_free_hours - used,
        created_at=user.created_at,
    )


def _get_teacher_or_404(db: Session, teacher_id: str) -> User:
    teacher = db.get(User, teacher_id)
    if teacher is None or teacher.role != UserRole.teacher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return teacher


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[TeacherOut]:
    week = quota_service.current_iso_week()
    query = (
        select(User, TeacherQuota)
        .outerjoin(TeacherQuota, TeacherQuota.user_id == User.id)
        .where(User.role == UserRole.teacher)
        .order_by(User.name, User.surname)
    )
    if current_user.role != UserRole.admin:
        query = query.where(User.id == current_user.id)
    return [_teacher_out(user, quota, week) for user, quota in db.execute(query).all()]


@router.get("/teachers/me", response_model=TeacherOut)
def get_my_teacher_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeacherOut:
    if current_user.role != UserRole.teacher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher profile not found")
    return _teacher_out(current_user, db.get(TeacherQuota, current_user.id), quota_service.current_iso_week())


@router.post("/teachers", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TeacherOut:
    existing = db.execute(select(User).where(func.lower(User.email) == payload.email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    teacher = User(
        name=payload.name,
        surname=payload.surname,
        email=payload.email,
        phone=payload.phone,
        role=UserRole.teacher,
        is_active=True,
    )
    db.add(teacher)
    db.flush()
    quota = quota_service.create_quota(db, user_id=teacher.id, weekly_free_hours=payload.weekly_free_hours)
    log_activity(
        db,
        actor=current_user,
        action="teacher.create",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"email": teacher.email, "weekly_free_hours": quota.weekly_free_hours},
    )
    db.commit()
    db.refresh(teacher)
    db.refresh(quota)
    return _teacher_out(teacher, quota, quota_service.current_iso_week())


@router.put("/teachers/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = _get_teacher_or_404(db, teacher_id)
    data = payload.model_dump(exclude_unset=True)

    if current_user.role == UserRole.admin:
        pass
    elif current_user.id == teacher.id:
        disallowed = sorted(set(data) - SELF_EDITABLE_TEACHER_FIELDS)
        if disallowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Teachers can only update: {', '.join(sorted(SELF_EDITABLE_TEACHER_FIELDS))}",
            )
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    for key in ("name", "is_active", "weekly_free_hours"):
        if key in data and data[key] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{key} cannot be cleared")
    if "name" in data and not data["name"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name cannot be empty")

    quota = db.get(TeacherQuota, teacher.id)
    weekly_free_hours = data.pop("weekly_free_hours", None)
    if weekly_free_hours is not None:
        if quota is None:
            quota = quota_service.create_quota(db, user_id=teacher.id, weekly_free_hours=weekly_free_hours)
        else:
            quota.weekly_free_hours = weekly_free_hours

    for key, value in data.items():
        setattr(teacher, key, value)

    if data or weekly_free_hours is not None:
        details = {"fields": sorted(data)}
        if weekly_free_hours is not None:
            details["weekly_free_hours"] = weekly_free_hours
        log_activity(
            db,
            actor=current_user,
            action="teacher.update",
            entity_type="teacher",
            entity_id=teacher.id,
            details=details,
        )
    db.commit()
    db.refresh(teacher)
    if quota is not None:
        db.refresh(quota)
    return _teacher_out(teacher, quota, quota_service.current_iso_week())


@router.delete("/teachers/{teacher_id}")
def delete_teacher(
    teacher_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    teacher = _get_teacher_or_404(db, teacher_id)
    upcoming = db.execute(
        select(func.count(Substitution.id)).where(
            Substitution.assigned_teacher_id == teacher.id,
            Substitution.substitution_date >= quota_service.school_today(),
        )
    ).scalar_one()
    if upcoming:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{teacher.full_name} still covers {upcoming} upcoming substitution(s); reassign them first",
        )

    quota = db.get(TeacherQuota, teacher.id)
    if quota is not None:
        db.delete(quota)
    log_activity(
        db,
        actor=current_user,
        action="teacher.delete",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"email": teacher.email},
    )
    db.delete(teacher)
    db.commit()
    return {"success": True}
