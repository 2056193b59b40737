"""User SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, DateTime, CheckConstraint, UniqueConstraint, Uuid
from sqlalchemy.orm import validates
import re

from .base import Base, utcnow


class User(Base):
    """User model mirroring the identity system's principal record.

    Users are created and updated by the external identity system; the
    document backend only reads them. The role, clearance and manager flags
    feed the access filter and the lifecycle permission checks.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(Text, nullable=False)
    full_name = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="user")
    security_clearance = Column(Text, nullable=True)  # None resolves to DEFAULT_CLEARANCE
    site_department_manager = Column(Boolean, nullable=False, default=False)
    can_manage_dept_tasks = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'user')",
            name='ck_users_role'
        ),
        UniqueConstraint('email', name='uq_users_email')
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()
