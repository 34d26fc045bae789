"""
Database engine and sessions (SQLAlchemy 2.0)

DATABASE_URL normally points at PostgreSQL (psycopg driver); a sqlite:/// URL
is accepted for local runs.
"""
from collections.abc import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from substracker.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for the subscription tables"""
    pass


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def engine_options(url: str) -> dict:
    """create_engine() keyword arguments for the given URL"""
    if url.startswith("sqlite"):
        # sync routes run in FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, created on first use"""
    global _engine
    if _engine is None:
        url = get_settings().get_sqlalchemy_url()
        _engine = create_engine(url, **engine_options(url))
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: one session per request, closed afterwards

    Use cases commit themselves; anything left uncommitted is discarded on close.
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness check: SELECT 1 through the configured engine

    Raises:
        sqlalchemy.exc.OperationalError: if the database is unreachable
    """
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
