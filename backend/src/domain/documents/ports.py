"""Document store, audit sink and principal directory ports.

The lifecycle manager depends only on these interfaces. Adapters live in
``infrastructure.repositories`` and ``audit.service``.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from domain.access.confidentiality import ConfidentialityLevel
from domain.access.models import Principal

from .models import AuditEntry, Document, VersionRecord


class DocumentStorePort(ABC):
    """Port interface for document persistence.

    All methods raise ``StoreError`` when the backing store is unreachable
    or rejects a write. Conditional writes return False when their
    precondition no longer holds.
    """

    @abstractmethod
    def get_document(self, document_id: UUID) -> Optional[Document]:
        """Load a document, or None if it does not exist"""
        pass

    @abstractmethod
    def list_documents(self, department_id: Optional[UUID] = None) -> List[Document]:
        """List documents, newest first, optionally within one department"""
        pass

    @abstractmethod
    def create_document(self, document: Document) -> Document:
        """Insert a new document and return it as stored"""
        pass

    @abstractmethod
    def update_document(
        self,
        document_id: UUID,
        changes: dict[str, Any],
        expected_version: Optional[Decimal] = None,
        allowed_holder: Optional[UUID] = None,
        expected_confidentiality: Optional[ConfidentialityLevel] = None,
    ) -> bool:
        """Apply ``changes`` to a document.

        Args:
            document_id: Target document
            changes: Field name -> new value (domain field names)
            expected_version: When set, only update if the stored version
                still equals it
            allowed_holder: When set, only update if the document is
                unlocked or locked by this principal
            expected_confidentiality: When set, only update if the stored
                level still equals it

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    def acquire_lock(
        self,
        document_id: UUID,
        holder_id: UUID,
        acquired_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        """Atomically lock a document for ``holder_id``.

        Succeeds when the document is unlocked or already held by
        ``holder_id`` (notes and timestamp are refreshed).
        """
        pass

    @abstractmethod
    def release_lock(
        self,
        document_id: UUID,
        holder_id: Optional[UUID] = None,
        changes: Optional[dict[str, Any]] = None,
        expected_version: Optional[Decimal] = None,
    ) -> bool:
        """Atomically clear a document's lock.

        Args:
            document_id: Target document
            holder_id: When set, only release if this principal holds the
                lock; when None, any active lock is released
            changes: Extra fields written in the same statement
            expected_version: When set, only release if the stored version
                still equals it

        Returns:
            True if a lock was released
        """
        pass

    @abstractmethod
    def append_version_record(self, record: VersionRecord) -> VersionRecord:
        """Append an immutable version record"""
        pass

    @abstractmethod
    def list_version_records(self, document_id: UUID) -> List[VersionRecord]:
        """Version records of a document ordered by version ascending"""
        pass

    @abstractmethod
    def list_checked_out_by(self, holder_id: UUID, department_id: Optional[UUID] = None) -> List[Document]:
        """Documents locked by ``holder_id``, most recent checkout first"""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Context manager committing all writes inside it together.

        Any exception raised inside the block rolls every write back and
        propagates.
        """
        pass


class AuditSinkPort(ABC):
    """Port interface for the append-only audit trail"""

    @abstractmethod
    def record(self, entry: AuditEntry) -> None:
        """Persist an audit entry (raises StoreError on failure)"""
        pass


class PrincipalDirectoryPort(ABC):
    """Port interface for reading principals from the identity system"""

    @abstractmethod
    def get_principal(self, user_id: UUID) -> Optional[Principal]:
        """Load a principal, or None if unknown"""
        pass
