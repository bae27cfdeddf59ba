"""Pytest fixtures and configuration for userstore tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from userstore.database.database import Base, get_db
from userstore.database.models import UserDB  # noqa: F401  (registers the users table)
from userstore.database.user_repository import UserRepository
from userstore.models.user import UserCreate


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine with a fresh schema for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for testing."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def sample_user_base():
    """Base candidate data; override keys per test."""
    return {
        "username": "alice",
        "password": "s3cret",
        "name": "Alice",
        "lastname": "Liddell",
        "email": "alice@example.com",
        "confirmed": True,
        "blocked": False,
        "status": True,
    }


@pytest.fixture
def sample_candidate(sample_user_base):
    """Create a sample UserCreate candidate."""
    return UserCreate(**sample_user_base)


@pytest.fixture
def make_users(user_repository):
    """Create several users from (username, name) pairs."""
    def _make(*pairs):
        return [
            user_repository.create_user(UserCreate(username=username, name=name))
            for username, name in pairs
        ]
    return _make


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with the database dependency overridden."""
    from userstore.api.app import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # The db_session fixture closes the session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
