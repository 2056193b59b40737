"""AuditLog SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, DateTime, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class AuditLog(Base):
    """AuditLog model for immutable document lifecycle events.

    Records every state-changing action on a file (upload, checkout,
    check-in, cancellation, new version, confidentiality change).
    Entries are append-only and should never be updated or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_created_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Uuid, nullable=False)
    action = Column(Text, nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    department_id = Column(Uuid, nullable=True)
    details = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    actor = relationship("User")
