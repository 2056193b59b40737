"""Task SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, DateTime, Index, Uuid

from .base import Base, utcnow


class Task(Base):
    """Task/correspondence row.

    Only the fields needed for clearance-based visibility are modelled here;
    the workflow itself is owned by the presentation layer.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_department_id", "department_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    department_id = Column(Uuid, nullable=True)
    assigned_to = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(Text, nullable=False, default="pending")
    priority = Column(Text, nullable=False, default="medium")
    confidentiality_level = Column(Text, nullable=True)  # None resolves to internal
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
