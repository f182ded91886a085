"""Seed a demo staff room: one admin, a few teachers with quotas and groups.

Prints a bearer token per account so the API can be exercised without the
identity service.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Iterable

from sqlalchemy import select

from app.core.security import create_access_token
from app.db.session import SessionLocal
from app.models.educational_group import EducationalGroup
from app.models.teacher_quota import TeacherQuota
from app.models.user import User, UserRole
from app.services.quota import current_iso_week

TOKEN_DAYS = int(os.getenv("DEMO_TOKEN_DAYS", "7"))


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_ACCOUNTS = {
    "admin": {
        "name": "Demo",
        "surname": "Head of Studies",
        "email": _env_email("DEMO_ADMIN_EMAIL", "admin.demo@example.com"),
        "role": UserRole.admin,
        "weekly_free_hours": None,
    },
    "teacher_1": {
        "name": "Lucia",
        "surname": "Moreno",
        "email": _env_email("DEMO_TEACHER1_EMAIL", "lucia.demo@example.com"),
        "role": UserRole.teacher,
        "weekly_free_hours": 3,
    },
    "teacher_2": {
        "name": "Pablo",
        "surname": "Serrano",
        "email": _env_email("DEMO_TEACHER2_EMAIL", "pablo.demo@example.com"),
        "role": UserRole.teacher,
        "weekly_free_hours": 4,
    },
    "teacher_3": {
        "name": "Marta",
        "surname": "Gil",
        "email": _env_email("DEMO_TEACHER3_EMAIL", "marta.demo@example.com"),
        "role": UserRole.teacher,
        "weekly_free_hours": 2,
    },
}

DEMO_GROUPS = [("1 ESO", "A"), ("1 ESO", "B"), ("2 ESO", "A"), ("1 Bachillerato", "A")]


def _upsert_user(*, name: str, surname: str, email: str, role: UserRole, weekly_free_hours: int | None) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(name=name, surname=surname, email=email, role=role, is_active=True)
            session.add(existing)
            session.flush()
        else:
            existing.name = name
            existing.surname = surname
            existing.role = role
            existing.is_active = True

        if weekly_free_hours is not None:
            quota = session.get(TeacherQuota, existing.id)
            if quota is None:
                session.add(
                    TeacherQuota(
                        user_id=existing.id,
                        weekly_free_hours=weekly_free_hours,
                        substitutions_this_week=0,
                        last_reset_week=current_iso_week(),
                    )
                )
            else:
                quota.weekly_free_hours = weekly_free_hours
        session.commit()
        session.refresh(existing)
        return existing


def _ensure_groups() -> int:
    created = 0
    with SessionLocal() as session:
        for level, name in DEMO_GROUPS:
            existing = session.execute(
                select(EducationalGroup).where(EducationalGroup.level == level, EducationalGroup.name == name)
            ).scalar_one_or_none()
            if existing is None:
                session.add(EducationalGroup(level=level, name=name))
                created += 1
        session.commit()
    return created


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in items:
        token = create_access_token(user.id, expires_delta=timedelta(days=TOKEN_DAYS))
        print(f"  - {label}: {user.email} | role={user.role.value}")
        print(f"    Authorization: Bearer {token}")


def main() -> None:
    created_users: dict[str, User] = {}
    for key, item in DEMO_ACCOUNTS.items():
        created_users[key] = _upsert_user(**item)

    created_groups = _ensure_groups()
    print(f"Groups created: {created_groups}")
    _print_accounts(created_users.items())


if __name__ == "__main__":
    main()
