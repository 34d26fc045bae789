"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from substracker.infrastructure.db.session import Base
from substracker.infrastructure.db.models import User


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def owner(db_session):
    user = User(id=1, email="owner@example.com", name="Owner")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def friend(db_session):
    user = User(id=2, email="friend@example.com", name="Lucía")
    db_session.add(user)
    db_session.commit()
    return user
