"""FileVersion SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, BigInteger, Numeric, DateTime, CheckConstraint, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class FileVersion(Base):
    """Append-only snapshot of a file taken when it moves to a new version.

    ``version_number`` is the version being superseded; ``file_url`` and
    ``file_size`` point at the artifact as it was at that version. Rows are
    never updated or deleted by the lifecycle manager.
    """
    __tablename__ = "file_versions"
    __table_args__ = (
        Index("ix_file_versions_file_id_version", "file_id", "version_number"),
        CheckConstraint(
            "version_type IN ('major', 'minor')",
            name="ck_file_versions_version_type"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    file_id = Column(Uuid, ForeignKey("files.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Numeric(6, 1), nullable=False)
    version_type = Column(Text, nullable=False)
    file_url = Column(Text, nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    uploaded_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    change_notes = Column(Text, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    file = relationship("File", back_populates="versions")
    uploader = relationship("User")
