import os

# The app bootstraps its schema on startup; keep that off any real database.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.teacher_quota import TeacherQuota
from app.models.user import User, UserRole
from app.services import quota as quota_service

TEST_WEEK = "2026-W43"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def current_week(monkeypatch):
    # Routes read the week through the quota module, so one patch pins all of them.
    monkeypatch.setattr(quota_service, "current_iso_week", lambda now=None: TEST_WEEK)
    return TEST_WEEK


@pytest.fixture()
def client(session_factory, current_week):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def create_admin(session_factory):
    def _create(*, email: str = "admin@example.com", name: str = "Admin") -> str:
        with session_factory() as db:
            admin = User(name=name, surname="Office", email=email, role=UserRole.admin, is_active=True)
            db.add(admin)
            db.commit()
            return admin.id

    return _create


@pytest.fixture()
def create_teacher(session_factory):
    def _create(
        *,
        email: str,
        name: str = "Teacher",
        surname: str = "",
        weekly_free_hours: int = 3,
        used: int = 0,
        last_reset_week: str | None = TEST_WEEK,
        is_active: bool = True,
        teacher_id: str | None = None,
    ) -> str:
        with session_factory() as db:
            teacher = User(name=name, surname=surname, email=email, role=UserRole.teacher, is_active=is_active)
            if teacher_id is not None:
                teacher.id = teacher_id
            db.add(teacher)
            db.flush()
            db.add(
                TeacherQuota(
                    user_id=teacher.id,
                    weekly_free_hours=weekly_free_hours,
                    substitutions_this_week=used,
                    last_reset_week=last_reset_week,
                )
            )
            db.commit()
            return teacher.id

    return _create


@pytest.fixture()
def get_quota(session_factory):
    def _get(teacher_id: str) -> TeacherQuota | None:
        with session_factory() as db:
            quota = db.get(TeacherQuota, teacher_id)
            if quota is not None:
                db.expunge(quota)
            return quota

    return _get


@pytest.fixture()
def auth_headers():
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
