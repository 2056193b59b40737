"""Document lifecycle service.

Implements checkout/check-in/cancel locking, version uploads and
confidentiality assignment on top of the document store ports. Every
operation re-reads the store, decides with the pure domain rules, then
issues conditional writes; business-rule failures come back as
``OperationResult`` values and only ``StoreError`` is raised.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Optional
from uuid import UUID, uuid4

from audit.service import AuditAction
from domain.access.confidentiality import LevelLike
from domain.access.models import Principal
from domain.access.policy import can_access, filter_visible, same_id
from domain.documents.confidentiality_assignment import assign_confidentiality
from domain.documents.errors import (
    ConcurrentUpdateError,
    ErrorCode,
    LifecycleError,
    StoreError,
    not_found,
)
from domain.documents.lock_state import LockAction, evaluate
from domain.documents.models import (
    AssignmentMode,
    AuditEntry,
    CheckoutInfo,
    Document,
    UploadPermission,
    VersionRecord,
    VersionType,
)
from domain.documents.ports import AuditSinkPort, DocumentStorePort, PrincipalDirectoryPort
from domain.documents.results import OperationResult
from domain.documents.validation import validate_file_size, validate_file_url, validate_filename
from domain.documents.versioning import INITIAL_VERSION, next_version, parse_version

logger = logging.getLogger(__name__)

LOCKED_BY_OTHER_MESSAGE = "Cannot upload new version: File is checked out by another user"
UPLOAD_FORBIDDEN_MESSAGE = "You do not have permission to upload a new version of this file"
CONCURRENT_MESSAGE = "File was modified by another user. Reload and try again"

# Shorter wording used when gating the upload control
UPLOAD_GATE_REASONS = {
    ErrorCode.LOCKED_BY_OTHER: "File is checked out by another user",
    ErrorCode.FORBIDDEN: "You do not have permission to upload versions",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentLifecycleService:
    """Service for document checkout, versioning and confidentiality.

    Collaborators:
    - store: single source of truth for documents and version records
    - audit_sink: append-only audit trail; failures are logged, never fatal
    - directory: resolves principals for manager and visibility checks

    Operations that take a ``user_id`` report files that user may not read
    as NOT_FOUND.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        audit_sink: AuditSinkPort,
        directory: PrincipalDirectoryPort,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.audit_sink = audit_sink
        self.directory = directory
        self.clock = clock

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def _audit(self, action: str, document: Document, actor_id: UUID, **details) -> None:
        entry = AuditEntry(
            action=action,
            actor_id=actor_id,
            entity_id=document.id,
            department_id=document.department_id,
            details={"file_name": document.name, **details},
        )
        try:
            self.audit_sink.record(entry)
        except StoreError:
            logger.error(
                f"Failed to create audit log for {action} on file {document.id}",
                exc_info=True,
                extra={"user_id": actor_id},
            )

    def _reject(self, operation: str, document_id: UUID, user_id: UUID, error: LifecycleError) -> OperationResult:
        logger.info(
            f"{operation} rejected for file {document_id}: {error.code.value}",
            extra={"user_id": user_id},
        )
        return OperationResult.fail(error)

    # ------------------------------------------------------------------
    # Upload and confidentiality
    # ------------------------------------------------------------------

    def register_upload(
        self,
        owner: Principal,
        name: str,
        file_url: str,
        file_size: int,
        confidentiality: LevelLike,
        assignees: Optional[Iterable[str]] = None,
        department_id: Optional[UUID] = None,
        file_type: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> OperationResult[Document]:
        """Create a document at version 1, unlocked.

        Any confidentiality level may be chosen on upload; non-public levels
        need assignees.
        """
        for is_valid, message in (
            validate_filename(name),
            validate_file_url(file_url),
            validate_file_size(file_size),
        ):
            if not is_valid:
                return OperationResult.fail(LifecycleError(ErrorCode.INVALID_FILE, message))

        assignment = assign_confidentiality(confidentiality, assignees, AssignmentMode.UPLOAD)
        if not assignment.success:
            return assignment

        now = self.clock()
        document = Document(
            id=uuid4(),
            name=name.strip(),
            owner_id=owner.id,
            confidentiality=assignment.value.level,
            file_url=file_url,
            file_size=file_size,
            version_number=parse_version(INITIAL_VERSION),
            assignees=assignment.value.assignees,
            department_id=department_id,
            file_type=file_type,
            tags=list(tags or []),
            created_at=now,
            modified_at=now,
        )

        with self.store.transaction():
            created = self.store.create_document(document)

        logger.info(
            f"File {created.id} uploaded with confidentiality {created.confidentiality.value}",
            extra={"user_id": owner.id},
        )
        self._audit(
            AuditAction.FILE_UPLOADED,
            created,
            owner.id,
            confidentiality=created.confidentiality.value,
            assignees=list(created.assignees),
        )
        return OperationResult.ok(created)

    def update_confidentiality(
        self,
        document_id: UUID,
        principal: Principal,
        level: LevelLike,
        assignees: Optional[Iterable[str]] = None,
    ) -> OperationResult[Document]:
        """Raise (or keep) a document's confidentiality and replace its assignees.

        Only the owner or a department manager may edit. The level and the
        assignee list are written in one statement, which only applies while
        the stored level is still the one validated against; otherwise the
        result is CONCURRENT_MODIFICATION.
        """
        document = self.store.get_document(document_id)
        if document is None or not can_access(principal, document):
            return OperationResult.fail(not_found())

        if not same_id(document.owner_id, principal.id) and not principal.is_manager:
            return self._reject(
                "Confidentiality change",
                document_id,
                principal.id,
                LifecycleError(
                    ErrorCode.FORBIDDEN,
                    "You do not have permission to change the confidentiality of this file",
                ),
            )

        assignment = assign_confidentiality(
            level,
            assignees,
            AssignmentMode.EDIT,
            current=document.confidentiality,
        )
        if not assignment.success:
            return self._reject("Confidentiality change", document_id, principal.id, assignment.error)

        try:
            with self.store.transaction():
                updated = self.store.update_document(
                    document_id,
                    {
                        "confidentiality": assignment.value.level,
                        "assignees": assignment.value.assignees,
                        "modified_at": self.clock(),
                    },
                    expected_confidentiality=document.confidentiality,
                )
                if not updated:
                    # The level was changed since it was read; re-validate against the new one
                    raise ConcurrentUpdateError(str(document_id))
        except ConcurrentUpdateError:
            return self._reject(
                "Confidentiality change",
                document_id,
                principal.id,
                LifecycleError(ErrorCode.CONCURRENT_MODIFICATION, CONCURRENT_MESSAGE),
            )

        self._audit(
            AuditAction.CONFIDENTIALITY_CHANGED,
            document,
            principal.id,
            confidentiality_from=document.confidentiality.value,
            confidentiality_to=assignment.value.level.value,
            assignees=assignment.value.assignees,
        )
        return OperationResult.ok(self.store.get_document(document_id))

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def list_visible_documents(self, principal: Principal, department_id: Optional[UUID] = None) -> List[Document]:
        return filter_visible(principal, self.store.list_documents(department_id))

    def get_visible_document(self, principal: Principal, document_id: UUID) -> OperationResult[Document]:
        """Load a document if ``principal`` may see it.

        Invisible documents are reported as NOT_FOUND so their existence is
        not disclosed.
        """
        document = self.store.get_document(document_id)
        if document is None or not can_access(principal, document):
            return OperationResult.fail(not_found())
        return OperationResult.ok(document)

    def _load_visible(self, document_id: UUID, user_id: UUID) -> Optional[Document]:
        """Lifecycle operations only act on documents the caller may read"""
        document = self.store.get_document(document_id)
        if document is None:
            return None
        principal = self.directory.get_principal(user_id)
        if principal is None or not can_access(principal, document):
            return None
        return document

    # ------------------------------------------------------------------
    # Checkout lifecycle
    # ------------------------------------------------------------------

    def check_out(self, document_id: UUID, user_id: UUID, notes: Optional[str] = None) -> OperationResult[Document]:
        """Lock a document for exclusive editing.

        Re-checkout by the current holder succeeds and refreshes the notes.
        The returned document carries the artifact reference to download.
        """
        document = self._load_visible(document_id, user_id)
        if document is None:
            return OperationResult.fail(not_found())

        error = evaluate(document.lock, LockAction.CHECK_OUT, user_id)
        if error is not None:
            return self._reject("Checkout", document_id, user_id, error)

        with self.store.transaction():
            acquired = self.store.acquire_lock(document_id, user_id, self.clock(), notes or None)

        if not acquired:
            # Another principal locked it between our read and the update
            return self._reject(
                "Checkout",
                document_id,
                user_id,
                LifecycleError(ErrorCode.ALREADY_LOCKED_BY_OTHER, "File is already checked out by another user"),
            )

        logger.info(f"File {document_id} checked out", extra={"user_id": user_id})
        self._audit(
            AuditAction.CHECKED_OUT,
            document,
            user_id,
            version=float(document.version_number),
            notes=notes or None,
        )
        return OperationResult.ok(self.store.get_document(document_id))

    def check_in(self, document_id: UUID, user_id: UUID) -> OperationResult[Decimal]:
        """Release the holder's lock and move to the next major version.

        The superseded version is recorded before the document is bumped;
        both writes commit together.
        """
        document = self._load_visible(document_id, user_id)
        if document is None:
            return OperationResult.fail(not_found())

        error = evaluate(document.lock, LockAction.CHECK_IN, user_id)
        if error is not None:
            return self._reject("Check-in", document_id, user_id, error)

        current = document.version_number
        new_version = next_version(current, VersionType.MAJOR)
        now = self.clock()

        try:
            with self.store.transaction():
                self.store.append_version_record(VersionRecord(
                    document_id=document_id,
                    version_number=current,
                    version_type=VersionType.MAJOR,
                    file_url=document.file_url,
                    file_size=document.file_size,
                    uploaded_by=user_id,
                    change_notes=document.lock.notes,
                    metadata=document.snapshot_metadata(),
                    uploaded_at=now,
                ))
                released = self.store.release_lock(
                    document_id,
                    holder_id=user_id,
                    changes={"version_number": new_version, "modified_at": now},
                    expected_version=current,
                )
                if not released:
                    raise ConcurrentUpdateError(str(document_id))
        except ConcurrentUpdateError:
            return self._reject(
                "Check-in",
                document_id,
                user_id,
                LifecycleError(ErrorCode.CONCURRENT_MODIFICATION, CONCURRENT_MESSAGE),
            )

        logger.info(f"File {document_id} checked in as version {new_version}", extra={"user_id": user_id})
        self._audit(
            AuditAction.CHECKED_IN,
            document,
            user_id,
            version_from=float(current),
            version_to=float(new_version),
        )
        return OperationResult.ok(new_version)

    def cancel_checkout(self, document_id: UUID, user_id: UUID, is_manager: bool = False) -> OperationResult[None]:
        """Clear a lock without changing the version.

        The holder may always cancel; a manager may force-cancel someone
        else's lock.
        """
        document = self._load_visible(document_id, user_id)
        if document is None:
            return OperationResult.fail(not_found())

        error = evaluate(document.lock, LockAction.CANCEL, user_id, is_manager=is_manager)
        if error is not None:
            return self._reject("Cancel checkout", document_id, user_id, error)

        holder_id = document.lock.holder_id
        with self.store.transaction():
            released = self.store.release_lock(document_id, holder_id=holder_id)

        if not released:
            return self._reject(
                "Cancel checkout",
                document_id,
                user_id,
                LifecycleError(ErrorCode.CONCURRENT_MODIFICATION, CONCURRENT_MESSAGE),
            )

        forced = not same_id(holder_id, user_id)
        if forced:
            logger.warning(
                f"Checkout of file {document_id} held by {holder_id} force-cancelled",
                extra={"user_id": user_id},
            )
        else:
            logger.info(f"Checkout of file {document_id} cancelled", extra={"user_id": user_id})

        self._audit(
            AuditAction.CHECKOUT_CANCELLED,
            document,
            user_id,
            holder_id=str(holder_id),
            forced=forced,
        )
        return OperationResult.ok()

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def _upload_permission(self, document: Document, user_id: UUID) -> Optional[LifecycleError]:
        if document.is_locked and not document.is_locked_by(user_id):
            return LifecycleError(ErrorCode.LOCKED_BY_OTHER, LOCKED_BY_OTHER_MESSAGE)

        if same_id(document.owner_id, user_id):
            return None

        principal = self.directory.get_principal(user_id)
        if principal is None or not principal.is_manager:
            return LifecycleError(ErrorCode.FORBIDDEN, UPLOAD_FORBIDDEN_MESSAGE)
        return None

    def can_upload_version(self, document_id: UUID, user_id: UUID) -> UploadPermission:
        """Mirror of the upload_new_version checks, for gating the UI"""
        document = self._load_visible(document_id, user_id)
        if document is None:
            return UploadPermission(allowed=False, reason="File not found")

        error = self._upload_permission(document, user_id)
        if error is not None:
            return UploadPermission(allowed=False, reason=UPLOAD_GATE_REASONS.get(error.code, error.message))
        return UploadPermission(allowed=True)

    def upload_new_version(
        self,
        document_id: UUID,
        user_id: UUID,
        new_file_url: str,
        new_file_size: int,
        version_type: VersionType,
        change_notes: Optional[str] = None,
    ) -> OperationResult[Decimal]:
        """Replace a document's artifact and bump its version.

        Args:
            document_id: Target document
            user_id: Uploading principal (owner or manager)
            new_file_url: Storage reference of the new artifact
            new_file_size: Size of the new artifact in bytes
            version_type: MAJOR (next whole number) or MINOR (+0.1)
            change_notes: Free-text description of the change

        Returns:
            OperationResult with the new version number
        """
        document = self._load_visible(document_id, user_id)
        if document is None:
            return OperationResult.fail(not_found())

        error = self._upload_permission(document, user_id)
        if error is not None:
            return self._reject("Version upload", document_id, user_id, error)

        for is_valid, message in (validate_file_url(new_file_url), validate_file_size(new_file_size)):
            if not is_valid:
                return OperationResult.fail(LifecycleError(ErrorCode.INVALID_FILE, message))

        try:
            version_type = VersionType(version_type)
        except ValueError:
            return OperationResult.fail(LifecycleError(
                ErrorCode.INVALID_FILE,
                f"Unknown version type {version_type!r}; expected 'major' or 'minor'",
            ))

        current = document.version_number
        new_version = next_version(current, version_type)
        now = self.clock()

        try:
            with self.store.transaction():
                # The snapshot must exist before the bumped version is visible
                self.store.append_version_record(VersionRecord(
                    document_id=document_id,
                    version_number=current,
                    version_type=version_type,
                    file_url=document.file_url,
                    file_size=document.file_size,
                    uploaded_by=user_id,
                    change_notes=change_notes or None,
                    metadata=document.snapshot_metadata(),
                    uploaded_at=now,
                ))
                updated = self.store.update_document(
                    document_id,
                    {
                        "file_url": new_file_url,
                        "file_size": new_file_size,
                        "version_number": new_version,
                        "modified_at": now,
                    },
                    expected_version=current,
                    allowed_holder=user_id,
                )
                if not updated:
                    raise ConcurrentUpdateError(str(document_id))
        except ConcurrentUpdateError:
            return self._reject(
                "Version upload",
                document_id,
                user_id,
                LifecycleError(ErrorCode.CONCURRENT_MODIFICATION, CONCURRENT_MESSAGE),
            )

        logger.info(
            f"File {document_id} moved from version {current} to {new_version} ({version_type.value})",
            extra={"user_id": user_id},
        )
        self._audit(
            AuditAction.VERSION_UPLOADED,
            document,
            user_id,
            version_from=float(current),
            version_to=float(new_version),
            version_type=version_type.value,
            change_notes=change_notes or None,
        )
        return OperationResult.ok(new_version)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_checkout_info(self, document_id: UUID) -> Optional[CheckoutInfo]:
        """Lock state of a document. Callers check visibility first."""
        document = self.store.get_document(document_id)
        if document is None:
            return None

        lock = document.lock
        checker_name = None
        if lock is not None:
            holder = self.directory.get_principal(lock.holder_id)
            checker_name = holder.full_name if holder else None

        return CheckoutInfo(
            checked_out=lock is not None,
            checked_out_by=lock.holder_id if lock else None,
            checked_out_at=lock.acquired_at if lock else None,
            checkout_notes=lock.notes if lock else None,
            version_number=document.version_number,
            checker_name=checker_name,
        )

    def get_version_history(self, document_id: UUID) -> List[VersionRecord]:
        return self.store.list_version_records(document_id)

    def get_latest_version(self, document_id: UUID) -> Decimal:
        document = self.store.get_document(document_id)
        if document is None:
            return parse_version(INITIAL_VERSION)
        return document.version_number

    def get_my_checked_out_files(self, user_id: UUID, department_id: Optional[UUID] = None) -> List[Document]:
        return self.store.list_checked_out_by(user_id, department_id)
