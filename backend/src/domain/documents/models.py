"""Document lifecycle domain models.

These are plain dataclasses (not database models). Store adapters map
their rows to and from them so the lifecycle manager never touches the ORM.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from domain.access.confidentiality import ConfidentialityLevel


class VersionType(str, Enum):
    """Kinds of version bump"""
    MAJOR = "major"   # floor(v) + 1
    MINOR = "minor"   # v + 0.1


class AssignmentMode(str, Enum):
    """Context in which a confidentiality level is being set"""
    UPLOAD = "upload"  # Any level allowed
    EDIT = "edit"      # Only the current level or higher


@dataclass(frozen=True)
class Lock:
    """Exclusive-edit claim embedded in a document"""
    holder_id: UUID
    acquired_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass
class Document:
    """A managed file with its confidentiality, lock and version state."""
    id: UUID
    name: str
    owner_id: UUID
    confidentiality: ConfidentialityLevel
    file_url: str
    file_size: int
    version_number: Decimal = Decimal("1")
    assignees: list[str] = field(default_factory=list)
    lock: Optional[Lock] = None
    department_id: Optional[UUID] = None
    file_type: Optional[str] = None
    status: str = "draft"
    tags: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @property
    def is_locked(self) -> bool:
        return self.lock is not None

    def is_locked_by(self, user_id: UUID) -> bool:
        return self.lock is not None and str(self.lock.holder_id) == str(user_id)

    def snapshot_metadata(self) -> dict[str, Any]:
        """Metadata copied into a version record when this version is superseded"""
        return {
            "name": self.name,
            "file_type": self.file_type,
            "status": self.status,
            "confidentiality": self.confidentiality.value,
            "tags": list(self.tags),
            "department_id": str(self.department_id) if self.department_id else None,
        }


@dataclass
class VersionRecord:
    """Immutable snapshot of a superseded version."""
    document_id: UUID
    version_number: Decimal
    version_type: VersionType
    file_url: str
    file_size: int
    uploaded_by: Optional[UUID]
    change_notes: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    uploaded_at: Optional[datetime] = None
    id: Optional[UUID] = None
    uploader_name: Optional[str] = None


@dataclass
class AuditEntry:
    """One state-changing action on a document."""
    action: str
    actor_id: Optional[UUID]
    entity_id: UUID
    entity_type: str = "file"
    department_id: Optional[UUID] = None
    details: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass
class CheckoutInfo:
    """Lock state of a document as shown next to it in the client"""
    checked_out: bool
    checked_out_by: Optional[UUID]
    checked_out_at: Optional[datetime]
    checkout_notes: Optional[str]
    version_number: Decimal
    checker_name: Optional[str] = None


@dataclass
class UploadPermission:
    """Whether a user may upload a new version, with the reason when not"""
    allowed: bool
    reason: Optional[str] = None


@dataclass
class ConfidentialityAssignment:
    """Validated confidentiality level and assignee list"""
    level: ConfidentialityLevel
    assignees: list[str] = field(default_factory=list)
