"""Files API Router - upload, confidentiality, checkout and version endpoints.

Thin adapter over DocumentLifecycleService: it resolves the caller, calls
the service and maps rejected operations to HTTP status codes:

- validation -> 422
- permission -> 403
- conflict   -> 409
- not_found  -> 404

Store failures (StoreError) are mapped to 503 by the application's
exception handler.

Every per-file endpoint answers 404 for files the caller may not read,
so their existence is not disclosed.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from audit.service import AuditLogSink
from auth.dependencies import get_current_principal
from database import get_db
from domain.access.models import Principal
from domain.documents.errors import ErrorKind, LifecycleError, not_found
from infrastructure.repositories.file_repository import FileRepository
from infrastructure.repositories.user_repository import UserRepository
from .schemas import (
    CheckInResponse,
    CheckoutInfoResponse,
    CheckoutRequest,
    ConfidentialityUpdate,
    ErrorResponse,
    FileCreate,
    FileListResponse,
    FileResponse,
    UploadPermissionResponse,
    VersionHistoryResponse,
    VersionResponse,
    VersionUploadRequest,
    VersionUploadResponse,
)
from .service import DocumentLifecycleService


router = APIRouter(prefix="/files", tags=["files"])

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.PERMISSION: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

ERROR_RESPONSES = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def get_lifecycle_service(db: Session = Depends(get_db)) -> DocumentLifecycleService:
    """Build the lifecycle service over the request's database session"""
    return DocumentLifecycleService(
        store=FileRepository(db),
        audit_sink=AuditLogSink(db),
        directory=UserRepository(db),
    )


def error_response(error: LifecycleError) -> JSONResponse:
    return JSONResponse(status_code=STATUS_BY_KIND[error.kind], content=error.to_dict())


def hidden_from(principal: Principal, file_id: UUID, service: DocumentLifecycleService) -> Optional[JSONResponse]:
    """404 response when the caller may not read the file, else None"""
    visible = service.get_visible_document(principal, file_id)
    return None if visible.success else error_response(visible.error)


@router.post(
    "",
    response_model=FileResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="Register an uploaded file",
)
def create_file(
    data: FileCreate,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Register an uploaded artifact as a file owned by the caller.

    Any confidentiality level may be chosen; non-public files need at least
    one assignee.
    """
    result = service.register_upload(
        owner=principal,
        name=data.name,
        file_url=data.file_url,
        file_size=data.file_size,
        confidentiality=data.confidentiality,
        assignees=data.assignees,
        department_id=data.department_id,
        file_type=data.file_type,
        tags=data.tags,
    )
    if not result.success:
        return error_response(result.error)
    return FileResponse.from_document(result.value)


@router.get("", response_model=FileListResponse, summary="List visible files")
def list_files(
    department_id: Optional[UUID] = Query(None, description="Filter by department"),
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> FileListResponse:
    """List the files the caller may see, newest first."""
    documents = service.list_visible_documents(principal, department_id)
    return FileListResponse(
        items=[FileResponse.from_document(document) for document in documents],
        total=len(documents),
    )


@router.get("/checked-out/me", response_model=FileListResponse, summary="Files checked out by the caller")
def list_my_checked_out_files(
    department_id: Optional[UUID] = Query(None, description="Filter by department"),
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
) -> FileListResponse:
    documents = service.get_my_checked_out_files(principal.id, department_id)
    return FileListResponse(
        items=[FileResponse.from_document(document) for document in documents],
        total=len(documents),
    )


@router.get("/{file_id}", response_model=FileResponse, responses=ERROR_RESPONSES, summary="Get file")
def get_file(
    file_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Get a file. Files the caller may not see are reported as 404."""
    result = service.get_visible_document(principal, file_id)
    if not result.success:
        return error_response(result.error)
    return FileResponse.from_document(result.value)


@router.put(
    "/{file_id}/confidentiality",
    response_model=FileResponse,
    responses=ERROR_RESPONSES,
    summary="Change confidentiality",
)
def update_confidentiality(
    file_id: UUID,
    data: ConfidentialityUpdate,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Keep or raise a file's confidentiality level and replace its assignees.

    Lowering the level is rejected with 422.
    """
    result = service.update_confidentiality(file_id, principal, data.confidentiality, data.assignees)
    if not result.success:
        return error_response(result.error)
    return FileResponse.from_document(result.value)


@router.post(
    "/{file_id}/checkout",
    response_model=FileResponse,
    responses=ERROR_RESPONSES,
    summary="Check out a file",
)
def checkout_file(
    file_id: UUID,
    data: Optional[CheckoutRequest] = Body(None),
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Lock a file for editing by the caller.

    The response carries ``file_url`` so the client can download a working
    copy. Checking out a file the caller already holds refreshes the notes.
    """
    result = service.check_out(file_id, principal.id, data.notes if data else None)
    if not result.success:
        return error_response(result.error)
    return FileResponse.from_document(result.value)


@router.post(
    "/{file_id}/checkin",
    response_model=CheckInResponse,
    responses=ERROR_RESPONSES,
    summary="Check in a file",
)
def checkin_file(
    file_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Release the caller's lock and move the file to the next major version."""
    result = service.check_in(file_id, principal.id)
    if not result.success:
        return error_response(result.error)
    return CheckInResponse(version_number=float(result.value))


@router.post(
    "/{file_id}/cancel-checkout",
    status_code=204,
    responses=ERROR_RESPONSES,
    summary="Cancel a checkout",
)
def cancel_checkout(
    file_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Release a lock without a version change (holder, or a manager)."""
    result = service.cancel_checkout(file_id, principal.id, is_manager=principal.is_manager)
    if not result.success:
        return error_response(result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{file_id}/checkout", response_model=CheckoutInfoResponse, responses=ERROR_RESPONSES)
def get_checkout_info(
    file_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    hidden = hidden_from(principal, file_id, service)
    if hidden is not None:
        return hidden
    info = service.get_checkout_info(file_id)
    if info is None:
        return error_response(not_found())
    return CheckoutInfoResponse.from_info(info)


@router.post(
    "/{file_id}/versions",
    response_model=VersionUploadResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="Upload a new version",
)
def upload_version(
    file_id: UUID,
    data: VersionUploadRequest,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Replace the file's artifact and bump its version.

    **Version types:**
    - minor: +0.1 (1.0 -> 1.1)
    - major: next whole number (1.3 -> 2.0)

    **Permissions:** owner or department manager, and the file must not be
    checked out by someone else.
    """
    result = service.upload_new_version(
        file_id,
        principal.id,
        new_file_url=data.file_url,
        new_file_size=data.file_size,
        version_type=data.version_type,
        change_notes=data.change_notes,
    )
    if not result.success:
        return error_response(result.error)
    return VersionUploadResponse(version_number=float(result.value))


@router.get("/{file_id}/versions", response_model=VersionHistoryResponse, responses=ERROR_RESPONSES)
def get_version_history(
    file_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    """Superseded versions in ascending order, plus the current version."""
    hidden = hidden_from(principal, file_id, service)
    if hidden is not None:
        return hidden
    records = service.get_version_history(file_id)
    return VersionHistoryResponse(
        file_id=file_id,
        latest_version=float(service.get_latest_version(file_id)),
        versions=[VersionResponse.from_record(record) for record in records],
    )


@router.get("/{file_id}/versions/can-upload", response_model=UploadPermissionResponse, responses=ERROR_RESPONSES)
def can_upload_version(
    file_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: DocumentLifecycleService = Depends(get_lifecycle_service),
):
    hidden = hidden_from(principal, file_id, service)
    if hidden is not None:
        return hidden
    permission = service.can_upload_version(file_id, principal.id)
    return UploadPermissionResponse(allowed=permission.allowed, reason=permission.reason)
