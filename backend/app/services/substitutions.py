from __future__ import annotations

from collections.abc import Iterable
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import InvalidSubstitutionError, NoTeacherAvailableError, ResourceNotFoundError
from app.models.educational_group import EducationalGroup
from app.models.substitution import Substitution, SubstitutionReason
from app.models.user import User, UserRole
from app.schemas.common import parse_time_to_minutes
from app.schemas.substitution import (
    SubstitutionConfirmationOut,
    SubstitutionCreate,
    SubstitutionOut,
    SubstitutionUpdate,
)
from app.services.quota import consume_capacity, current_iso_week, increment_substitution, reset_weekly_counters
from app.services.recommender import recommend_teacher

logger = logging.getLogger(__name__)


def _get_assignable_teacher(db: Session, teacher_id: str) -> User:
    teacher = db.get(User, teacher_id)
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    if teacher.role != UserRole.teacher:
        raise InvalidSubstitutionError("Substitutions can only be assigned to teachers", {"user_id": teacher_id})
    if not teacher.is_active:
        raise InvalidSubstitutionError(f"{teacher.full_name} is inactive", {"user_id": teacher_id})
    return teacher


def _ensure_user_exists(db: Session, user_id: str | None) -> None:
    if user_id is not None and db.get(User, user_id) is None:
        raise ResourceNotFoundError("Teacher", user_id)


def _ensure_group_exists(db: Session, group_id: str | None) -> None:
    if group_id is not None and db.get(EducationalGroup, group_id) is None:
        raise ResourceNotFoundError("Group", group_id)


def _auto_assign(db: Session, *, week: str, exclude_ids: Iterable[str]) -> str:
    excluded = {item for item in exclude_ids if item}
    attempts = max(1, get_settings().auto_assign_max_attempts)
    for _ in range(attempts):
        candidate = recommend_teacher(db, week=week, exclude_ids=excluded)
        if candidate is None:
            break
        if consume_capacity(db, candidate.user_id, week=week):
            return candidate.user_id
        # Another request consumed the last free hour between read and update.
        logger.info("Teacher %s ran out of capacity before assignment; retrying", candidate.user_id)
        excluded.add(candidate.user_id)
    raise NoTeacherAvailableError(week)


def create_substitution(
    db: Session,
    payload: SubstitutionCreate,
    *,
    actor: User,
    week: str | None = None,
) -> Substitution:
    """Insert a substitution and count it against the covering teacher's quota.

    The record and the counter update share the caller's transaction, so
    either both are committed or neither is. Without an explicit
    ``assigned_teacher_id`` the least-loaded teacher is chosen and capacity
    is consumed atomically; an explicit teacher is counted even when over
    capacity.
    """
    week = week or current_iso_week()
    _ensure_group_exists(db, payload.group_id)
    _ensure_user_exists(db, payload.absent_teacher_id)

    reset_weekly_counters(db, week=week)
    if payload.assigned_teacher_id is None:
        assigned_teacher_id = _auto_assign(db, week=week, exclude_ids=[payload.absent_teacher_id])
    else:
        assigned_teacher_id = _get_assignable_teacher(db, payload.assigned_teacher_id).id
        increment_substitution(db, assigned_teacher_id)

    record = Substitution(
        substitution_date=payload.substitution_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        assigned_teacher_id=assigned_teacher_id,
        absent_teacher_id=payload.absent_teacher_id,
        group_id=payload.group_id,
        reason=payload.reason,
        reason_other=payload.reason_other,
        notes=payload.notes,
        period=payload.period,
        transport_duty=payload.transport_duty,
        seen=False,
        confirmed_by_teacher=False,
        created_by=actor.id,
    )
    db.add(record)
    db.flush()
    return record


def update_substitution(db: Session, record: Substitution, payload: SubstitutionUpdate) -> dict:
    """Apply a partial update. Quotas are left untouched, even on reassignment."""
    data = payload.model_dump(exclude_unset=True)
    for key in ("substitution_date", "start_time", "end_time", "reason", "assigned_teacher_id"):
        if key in data and data[key] is None:
            raise InvalidSubstitutionError(f"{key} cannot be cleared")

    if "assigned_teacher_id" in data:
        _get_assignable_teacher(db, data["assigned_teacher_id"])
    if data.get("absent_teacher_id") is not None:
        _ensure_user_exists(db, data["absent_teacher_id"])
    if data.get("group_id") is not None:
        _ensure_group_exists(db, data["group_id"])

    start_time = data.get("start_time", record.start_time)
    end_time = data.get("end_time", record.end_time)
    if parse_time_to_minutes(end_time) <= parse_time_to_minutes(start_time):
        raise InvalidSubstitutionError("end_time must be after start_time")

    reason = data.get("reason", record.reason)
    if reason == SubstitutionReason.other:
        if not data.get("reason_other", record.reason_other):
            raise InvalidSubstitutionError("reason_other is required when reason is 'other'")
    else:
        data["reason_other"] = None

    assigned = data.get("assigned_teacher_id", record.assigned_teacher_id)
    absent = data.get("absent_teacher_id", record.absent_teacher_id)
    if absent is not None and assigned == absent:
        raise InvalidSubstitutionError("The assigned teacher cannot be the absent teacher")

    changes: dict = {}
    for key, value in data.items():
        if getattr(record, key) != value:
            changes[key] = value
            setattr(record, key, value)
    return changes


def list_substitutions(
    db: Session,
    *,
    start: date | None = None,
    end: date | None = None,
    teacher_id: str | None = None,
) -> list[Substitution]:
    query = select(Substitution)
    if start is not None:
        query = query.where(Substitution.substitution_date >= start)
    if end is not None:
        query = query.where(Substitution.substitution_date <= end)
    if teacher_id is not None:
        query = query.where(Substitution.assigned_teacher_id == teacher_id)
    query = query.order_by(
        Substitution.substitution_date.desc(),
        Substitution.start_time,
        Substitution.created_at,
    )
    return list(db.execute(query).scalars())


def list_pending_for_teacher(db: Session, teacher_id: str, *, today: date) -> list[Substitution]:
    query = (
        select(Substitution)
        .where(
            Substitution.assigned_teacher_id == teacher_id,
            Substitution.confirmed_by_teacher.is_(False),
            Substitution.substitution_date >= today,
        )
        .order_by(Substitution.substitution_date, Substitution.start_time)
    )
    return list(db.execute(query).scalars())


def _lookup_names(db: Session, records: list[Substitution]) -> tuple[dict[str, User], dict[str, EducationalGroup]]:
    user_ids: set[str] = set()
    group_ids: set[str] = set()
    for record in records:
        user_ids.add(record.assigned_teacher_id)
        if record.absent_teacher_id:
            user_ids.add(record.absent_teacher_id)
        if record.group_id:
            group_ids.add(record.group_id)

    users: dict[str, User] = {}
    if user_ids:
        users = {item.id: item for item in db.execute(select(User).where(User.id.in_(user_ids))).scalars()}
    groups: dict[str, EducationalGroup] = {}
    if group_ids:
        groups = {
            item.id: item
            for item in db.execute(select(EducationalGroup).where(EducationalGroup.id.in_(group_ids))).scalars()
        }
    return users, groups


def _group_label(group: EducationalGroup | None) -> str | None:
    if group is None:
        return None
    return f"{group.level} {group.name}".strip()


def hydrate_substitutions(db: Session, records: list[Substitution]) -> list[SubstitutionOut]:
    users, groups = _lookup_names(db, records)
    results: list[SubstitutionOut] = []
    for record in records:
        assigned = users.get(record.assigned_teacher_id)
        absent = users.get(record.absent_teacher_id) if record.absent_teacher_id else None
        item = SubstitutionOut.model_validate(record)
        item.assigned_teacher_name = assigned.full_name if assigned is not None else None
        item.absent_teacher_name = absent.full_name if absent is not None else None
        item.group_name = _group_label(groups.get(record.group_id)) if record.group_id else None
        results.append(item)
    return results


def confirmations_for_date(db: Session, day: date) -> list[SubstitutionConfirmationOut]:
    records = list(
        db.execute(
            select(Substitution)
            .where(Substitution.substitution_date == day)
            .order_by(Substitution.start_time, Substitution.created_at)
        ).scalars()
    )
    users, groups = _lookup_names(db, records)
    rows: list[SubstitutionConfirmationOut] = []
    for record in records:
        teacher = users.get(record.assigned_teacher_id)
        rows.append(
            SubstitutionConfirmationOut(
                substitution_id=record.id,
                teacher_id=record.assigned_teacher_id,
                teacher_name=teacher.full_name if teacher is not None else None,
                group_name=_group_label(groups.get(record.group_id)) if record.group_id else None,
                start_time=record.start_time,
                end_time=record.end_time,
                seen=record.seen,
                confirmed=record.confirmed_by_teacher,
            )
        )
    return rows
