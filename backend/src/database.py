"""Database engine and session management.

The document store adapters and the audit sink share the request's session
from ``get_db``. Schema management is ``init_db`` (metadata.create_all);
there are no migrations.
"""

from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from config import get_settings
from models import Base

DATABASE_URL = get_settings().DATABASE_URL


def _engine_options(url: str) -> dict:
    options = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Sessions are used from FastAPI's threadpool
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(pool_size=5, max_overflow=10)
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create any missing tables (files, file_versions, users, tasks, audit_log)"""
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
