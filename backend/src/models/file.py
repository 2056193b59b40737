"""File SQLAlchemy model

A file is a managed document: its artifact lives in the storage bucket
(``file_url``) while this row carries the confidentiality, checkout lock
and version fields the lifecycle manager reads and writes.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, BigInteger, Numeric, DateTime, CheckConstraint, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class File(Base):
    """File model representing a managed document.

    Lock state is expressed by ``checked_out_by``: NULL means unlocked.
    ``version_number`` is a decimal with one fractional digit (1, 1.1, 2.0).
    """
    __tablename__ = "files"
    __table_args__ = (
        Index("ix_files_department_id", "department_id"),
        Index("ix_files_checked_out_by", "checked_out_by"),
        CheckConstraint(
            "confidentiality IN ('public', 'internal', 'confidential', 'restricted', 'secret', 'top_secret')",
            name="ck_files_confidentiality"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    file_type = Column(Text, nullable=True)
    file_url = Column(Text, nullable=False)  # Object key in the storage bucket
    file_size = Column(BigInteger, nullable=False, default=0)
    department_id = Column(Uuid, nullable=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    status = Column(Text, nullable=False, default="draft")
    confidentiality = Column(Text, nullable=False, default="internal")
    assignees = Column(PortableJSONB, nullable=False, default=list)
    tags = Column(PortableJSONB, nullable=False, default=list)
    version_number = Column(Numeric(6, 1), nullable=False, default=1)
    checked_out_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)
    checkout_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    owner = relationship("User", foreign_keys=[uploaded_by])
    checker = relationship("User", foreign_keys=[checked_out_by])
    versions = relationship(
        "FileVersion",
        back_populates="file",
        order_by="FileVersion.version_number",
    )
