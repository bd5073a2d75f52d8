"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from uuid import uuid4

# Set test environment before importing app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DEBUG"] = "false"
os.environ["ADMIN_EMAILS"] = "owner@gmail.com"
os.environ["ALLOWED_EMAIL_DOMAIN"] = "gmail.com"
os.environ["LLM_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from memberpages.auth.schemas import Principal
from memberpages.auth.utils import get_password_hash
from memberpages.db.database import build_engine
from memberpages.db.models import Base, User, UserRole, UserStatus

engine = build_engine("sqlite:///:memory:")
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    # Import here to ensure env vars are set
    from memberpages.dependencies import get_db
    from memberpages.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_user(db: Session) -> User:
    """Create an approved member."""
    user = User(
        id=str(uuid4()),
        email="member@gmail.com",
        password_hash=get_password_hash("memberpassword123"),
        full_name="Test Member",
        role=UserRole.USER,
        status=UserStatus.APPROVED,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_admin(db: Session) -> User:
    """Create an approved admin."""
    admin = User(
        id=str(uuid4()),
        email="owner@gmail.com",
        password_hash=get_password_hash("adminpassword123"),
        full_name="Admin User",
        role=UserRole.ADMIN,
        status=UserStatus.APPROVED,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def admin_principal() -> Principal:
    """Principal of an approved admin."""
    return Principal(user_id=str(uuid4()), email="owner@gmail.com", is_admin=True, is_approved=True)


@pytest.fixture
def member_principal() -> Principal:
    """Principal of an approved non-admin member."""
    return Principal(
        user_id=str(uuid4()), email="member@gmail.com", is_admin=False, is_approved=True
    )


@pytest.fixture
def authenticated_client(client: TestClient, test_user: User) -> TestClient:
    """Create a member-authenticated test client."""
    from memberpages.dependencies import get_current_user
    from memberpages.main import app

    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_current_user] = override_get_current_user
    yield client
    if get_current_user in app.dependency_overrides:
        del app.dependency_overrides[get_current_user]


@pytest.fixture
def admin_client(client: TestClient, test_admin: User) -> TestClient:
    """Create an admin-authenticated test client."""
    from memberpages.dependencies import get_current_user
    from memberpages.main import app

    def override_get_current_user():
        return test_admin

    app.dependency_overrides[get_current_user] = override_get_current_user
    yield client
    if get_current_user in app.dependency_overrides:
        del app.dependency_overrides[get_current_user]
