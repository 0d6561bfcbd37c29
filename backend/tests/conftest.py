"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; point them at a throwaway database first
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-for-quiz-tests"
os.environ["RECONCILE_ENABLED"] = "false"

from collections.abc import Generator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import lms_quiz.models  # noqa: F401
from lms_quiz.core.clock import FrozenClock, get_clock
from lms_quiz.core.security import create_access_token
from lms_quiz.db.base import Base
from lms_quiz.db.session import get_db, make_session_factory
from lms_quiz.main import app
from lms_quiz.models.user import User, UserRole
from tests.helpers.seed import create_test_user

T0 = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite shared by every session of a test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at T0; tests move it explicitly."""
    return FrozenClock(T0)


@pytest.fixture
def client(db, clock) -> Generator[TestClient, None, None]:
    """FastAPI test client sharing the test session and clock."""

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close the session, it's managed by the db fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def teacher(db) -> User:
    return create_test_user(db, role=UserRole.TEACHER)


@pytest.fixture
def other_teacher(db) -> User:
    return create_test_user(db, role=UserRole.TEACHER)


@pytest.fixture
def admin(db) -> User:
    return create_test_user(db, role=UserRole.ADMIN)


@pytest.fixture
def student(db) -> User:
    return create_test_user(db, role=UserRole.STUDENT)


@pytest.fixture
def other_student(db) -> User:
    return create_test_user(db, role=UserRole.STUDENT)


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user_id=str(user.id), role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_teacher(teacher):
    return auth_headers(teacher)


@pytest.fixture
def auth_headers_admin(admin):
    return auth_headers(admin)


@pytest.fixture
def auth_headers_student(student):
    return auth_headers(student)
