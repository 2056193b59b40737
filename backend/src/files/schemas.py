"""Pydantic schemas for the Files API

Request/response models for file upload, confidentiality, checkout and
version endpoints.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from domain.documents.models import CheckoutInfo, Document, VersionRecord, VersionType


# ============================================================================
# Requests
# ============================================================================

class FileCreate(BaseModel):
    """Register an uploaded artifact as a new file (POST /files)"""
    name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, description="Storage reference of the uploaded artifact")
    file_size: int = Field(..., ge=0, description="Size in bytes")
    confidentiality: str = Field("public", description="public, internal, confidential, restricted, secret, top_secret")
    assignees: List[str] = Field(default_factory=list, description="User ids allowed to see a non-public file")
    department_id: Optional[UUID] = None
    file_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra='forbid')


class ConfidentialityUpdate(BaseModel):
    """Change confidentiality and assignees (PUT /files/{id}/confidentiality)"""
    confidentiality: str
    assignees: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra='forbid')


class CheckoutRequest(BaseModel):
    """Optional body for POST /files/{id}/checkout"""
    notes: Optional[str] = Field(None, max_length=2000)


class VersionUploadRequest(BaseModel):
    """Upload a new version (POST /files/{id}/versions)"""
    file_url: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0)
    version_type: VersionType = VersionType.MINOR
    change_notes: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(extra='forbid')


# ============================================================================
# Responses
# ============================================================================

class ErrorResponse(BaseModel):
    """Body of every rejected lifecycle request"""
    error: str = Field(..., description="Machine-readable code, e.g. LOCKED_BY_OTHER")
    kind: str = Field(..., description="validation, permission, conflict or not_found")
    message: str = Field(..., description="Human-readable reason")


class FileResponse(BaseModel):
    """A file with its confidentiality, lock and version state"""
    id: UUID
    name: str
    owner_id: UUID
    department_id: Optional[UUID] = None
    confidentiality: str
    assignees: List[str] = Field(default_factory=list)
    file_url: str
    file_size: int
    file_type: Optional[str] = None
    status: str
    tags: List[str] = Field(default_factory=list)
    version_number: float
    is_checked_out: bool
    checked_out_by: Optional[UUID] = None
    checked_out_at: Optional[datetime] = None
    checkout_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Document) -> "FileResponse":
        lock = document.lock
        return cls(
            id=document.id,
            name=document.name,
            owner_id=document.owner_id,
            department_id=document.department_id,
            confidentiality=document.confidentiality.value,
            assignees=list(document.assignees),
            file_url=document.file_url,
            file_size=document.file_size,
            file_type=document.file_type,
            status=document.status,
            tags=list(document.tags),
            version_number=float(document.version_number),
            is_checked_out=lock is not None,
            checked_out_by=lock.holder_id if lock else None,
            checked_out_at=lock.acquired_at if lock else None,
            checkout_notes=lock.notes if lock else None,
            created_at=document.created_at,
            modified_at=document.modified_at,
        )


class FileListResponse(BaseModel):
    items: List[FileResponse]
    total: int


class CheckInResponse(BaseModel):
    success: bool = True
    version_number: float


class VersionUploadResponse(BaseModel):
    success: bool = True
    version_number: float


class CheckoutInfoResponse(BaseModel):
    """Lock state of a file"""
    checked_out: bool
    checked_out_by: Optional[UUID] = None
    checked_out_at: Optional[datetime] = None
    checkout_notes: Optional[str] = None
    version_number: float
    checker_name: Optional[str] = None

    @classmethod
    def from_info(cls, info: CheckoutInfo) -> "CheckoutInfoResponse":
        return cls(
            checked_out=info.checked_out,
            checked_out_by=info.checked_out_by,
            checked_out_at=info.checked_out_at,
            checkout_notes=info.checkout_notes,
            version_number=float(info.version_number),
            checker_name=info.checker_name,
        )


class VersionResponse(BaseModel):
    """A superseded version snapshot"""
    id: Optional[UUID] = None
    file_id: UUID
    version_number: float
    version_type: VersionType
    file_url: str
    file_size: int
    uploaded_by: Optional[UUID] = None
    uploader_name: Optional[str] = None
    change_notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    uploaded_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: VersionRecord) -> "VersionResponse":
        return cls(
            id=record.id,
            file_id=record.document_id,
            version_number=float(record.version_number),
            version_type=record.version_type,
            file_url=record.file_url,
            file_size=record.file_size,
            uploaded_by=record.uploaded_by,
            uploader_name=record.uploader_name,
            change_notes=record.change_notes,
            metadata=record.metadata,
            uploaded_at=record.uploaded_at,
        )


class VersionHistoryResponse(BaseModel):
    file_id: UUID
    latest_version: float
    versions: List[VersionResponse]


class UploadPermissionResponse(BaseModel):
    allowed: bool
    reason: Optional[str] = None
