"""Declarative base and column helpers shared by the document models"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base
from sqlalchemy import TypeDecorator, JSON
from sqlalchemy.dialects.postgresql import JSONB


class PortableJSONB(TypeDecorator):
    """JSONB on PostgreSQL, plain JSON elsewhere.

    List-valued and detail columns use this type so the test suite can run on
    SQLite.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        native = JSONB() if dialect.name == 'postgresql' else JSON()
        return dialect.type_descriptor(native)


def utcnow() -> datetime:
    """Aware UTC timestamp used as a column default"""
    return datetime.now(timezone.utc)


Base = declarative_base()
