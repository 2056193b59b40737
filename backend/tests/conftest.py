"""Pytest fixtures for the document backend.

Provides reusable test fixtures for:
- SQLite in-memory database session (schema created per test)
- Principals with different capabilities (owner, assignee, manager, admin)
- DocumentLifecycleService wired to the SQLAlchemy adapters
- Authenticated test clients with JWT tokens

Usage:
    def test_checkout(service, alice, public_file):
        result = service.check_out(public_file.id, alice.id)
        assert result.success
"""

import sys
import os
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Callable, Generator

from models import Base, User, Task
from audit.service import AuditLogSink
from auth.jwt import create_access_token
from domain.access.models import Principal
from domain.documents.models import Document
from files.service import DocumentLifecycleService
from infrastructure.repositories.file_repository import FileRepository
from infrastructure.repositories.user_repository import UserRepository
from database import get_db as database_get_db, init_db

# Importing the app configures logging; do it once here so it does not
# replace pytest's capture handlers in the middle of a test
from main import app


test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    init_db(test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating committed users."""

    def _make_user(
        name: str,
        role: str = "user",
        security_clearance: str = None,
        site_department_manager: bool = False,
        can_manage_dept_tasks: bool = False,
    ) -> User:
        user = User(
            email=f"{name.lower()}@example.com",
            full_name=name,
            role=role,
            security_clearance=security_clearance,
            site_department_manager=site_department_manager,
            can_manage_dept_tasks=can_manage_dept_tasks,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def alice(make_user) -> User:
    return make_user("Alice")


@pytest.fixture
def bob(make_user) -> User:
    return make_user("Bob")


@pytest.fixture
def carol(make_user) -> User:
    return make_user("Carol")


@pytest.fixture
def manager(make_user) -> User:
    """Site department manager"""
    return make_user("Morgan", site_department_manager=True)


@pytest.fixture
def task_manager(make_user) -> User:
    """Manages department tasks (counts as a manager for lifecycle checks)"""
    return make_user("Taylor", can_manage_dept_tasks=True)


@pytest.fixture
def admin(make_user) -> User:
    return make_user("Ada", role="admin")


@pytest.fixture
def principal_of() -> Callable[[User], Principal]:
    return Principal.from_user


@pytest.fixture
def store(db_session: Session) -> FileRepository:
    return FileRepository(db_session)


@pytest.fixture
def service(db_session: Session, store: FileRepository) -> DocumentLifecycleService:
    return DocumentLifecycleService(
        store=store,
        audit_sink=AuditLogSink(db_session),
        directory=UserRepository(db_session),
    )


@pytest.fixture
def make_file(service: DocumentLifecycleService) -> Callable[..., Document]:
    """Factory registering a file through the service (version 1, unlocked)."""

    def _make_file(
        owner: User,
        confidentiality: str = "public",
        assignees=None,
        name: str = "contract.docx",
    ) -> Document:
        result = service.register_upload(
            owner=Principal.from_user(owner),
            name=name,
            file_url=f"files/{name}",
            file_size=2048,
            confidentiality=confidentiality,
            assignees=assignees,
        )
        assert result.success, result.error
        return result.value

    return _make_file


@pytest.fixture
def public_file(make_file, alice) -> Document:
    """Public file owned by Alice"""
    return make_file(alice)


@pytest.fixture
def internal_file(make_file, alice, carol) -> Document:
    """Internal file owned by Alice, assigned to Carol"""
    return make_file(alice, "internal", [str(carol.id)], name="budget.xlsx")


@pytest.fixture
def make_task(db_session: Session) -> Callable[..., Task]:
    def _make_task(title: str, confidentiality_level: str = None, **fields) -> Task:
        task = Task(title=title, confidentiality_level=confidentiality_level, **fields)
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _make_task


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create an unauthenticated test client bound to the test session."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], dict]:
    """Build an Authorization header for a user."""

    def _auth_headers(user: User) -> dict:
        token = create_access_token(user_id=user.id, role=user.role, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
