from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.models.educational_group import EducationalGroup
from app.models.substitution import Substitution
from app.models.user import User
from app.schemas.group import EducationalGroupCreate, EducationalGroupOut
from app.services.audit import log_activity

router = APIRouter()


@router.get("/groups", response_model=list[EducationalGroupOut])
def list_groups(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[EducationalGroupOut]:
    return list(db.execute(select(EducationalGroup).order_by(EducationalGroup.level, EducationalGroup.name)).scalars())


@router.post("/groups", response_model=EducationalGroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: EducationalGroupCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EducationalGroupOut:
    existing = db.execute(
        select(EducationalGroup).where(
            EducationalGroup.level == payload.level,
            EducationalGroup.name == payload.name,
        )
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group already exists")
    group = EducationalGroup(**payload.model_dump())
    db.add(group)
    db.flush()
    log_activity(
        db,
        actor=current_user,
        action="group.create",
        entity_type="group",
        entity_id=group.id,
        details={"level": group.level, "name": group.name},
    )
    db.commit()
    db.refresh(group)
    return group


@router.delete("/groups/{group_id}")
def delete_group(
    group_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    group = db.get(EducationalGroup, group_id)
    if group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    referenced = db.execute(
        select(func.count(Substitution.id)).where(Substitution.group_id == group_id)
    ).scalar_one()
    if referenced:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Group is referenced by {referenced} substitution(s)",
        )
    log_activity(db, actor=current_user, action="group.delete", entity_type="group", entity_id=group.id)
    db.delete(group)
    db.commit()
    return {"success": True}
