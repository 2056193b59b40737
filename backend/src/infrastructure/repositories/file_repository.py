"""SQLAlchemy document store.

Implements ``DocumentStorePort`` over the ``files`` and ``file_versions``
tables. Lock and version changes are single conditional UPDATE statements
so that two concurrent callers cannot both observe "unlocked" and both win.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Generator, List, Optional
from uuid import UUID

from sqlalchemy import select, update, and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.file import File as FileModel
from models.file_version import FileVersion as FileVersionModel
from domain.access.confidentiality import ConfidentialityLevel, resolve_level
from domain.documents.errors import StoreError
from domain.documents.models import Document, Lock, VersionRecord, VersionType
from domain.documents.ports import DocumentStorePort
from domain.documents.versioning import parse_version

logger = logging.getLogger(__name__)

# Domain field name -> files column name
FIELD_COLUMNS = {
    "name": "name",
    "owner_id": "uploaded_by",
    "confidentiality": "confidentiality",
    "assignees": "assignees",
    "file_url": "file_url",
    "file_size": "file_size",
    "version_number": "version_number",
    "department_id": "department_id",
    "file_type": "file_type",
    "status": "status",
    "tags": "tags",
    "modified_at": "modified_at",
}


@contextmanager
def _store_errors(operation: str) -> Generator[None, None, None]:
    """Translate database failures into StoreError"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Document store {operation} failed: {e}", exc_info=True)
        raise StoreError(f"Document store {operation} failed") from e


def _to_columns(changes: dict[str, Any]) -> dict[str, Any]:
    values = {}
    for field_name, value in changes.items():
        column = FIELD_COLUMNS.get(field_name)
        if column is None:
            raise ValueError(f"Unknown document field: {field_name}")
        if isinstance(value, ConfidentialityLevel):
            value = value.value
        values[column] = value
    return values


def to_document(row: FileModel) -> Document:
    """Map a files row to the domain Document"""
    lock = None
    if row.checked_out_by is not None:
        lock = Lock(
            holder_id=row.checked_out_by,
            acquired_at=row.checked_out_at,
            notes=row.checkout_notes,
        )

    return Document(
        id=row.id,
        name=row.name,
        owner_id=row.uploaded_by,
        confidentiality=resolve_level(row.confidentiality),
        file_url=row.file_url,
        file_size=row.file_size or 0,
        version_number=parse_version(row.version_number),
        assignees=[str(a) for a in (row.assignees or [])],
        lock=lock,
        department_id=row.department_id,
        file_type=row.file_type,
        status=row.status,
        tags=list(row.tags or []),
        created_at=row.created_at,
        modified_at=row.modified_at,
    )


def to_version_record(row: FileVersionModel) -> VersionRecord:
    """Map a file_versions row to the domain VersionRecord"""
    return VersionRecord(
        id=row.id,
        document_id=row.file_id,
        version_number=parse_version(row.version_number),
        version_type=VersionType(row.version_type),
        file_url=row.file_url,
        file_size=row.file_size or 0,
        uploaded_by=row.uploaded_by,
        change_notes=row.change_notes,
        metadata=dict(row.metadata_json or {}),
        uploaded_at=row.uploaded_at,
        uploader_name=row.uploader.full_name if row.uploader else None,
    )


class FileRepository(DocumentStorePort):
    """Repository for files and file_versions database operations.

    Reads always go to the database (``populate_existing``) so that no state
    is carried between lifecycle calls through the session identity map.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _load(self, document_id: UUID) -> Optional[FileModel]:
        query = (
            select(FileModel)
            .where(FileModel.id == document_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(query).scalar_one_or_none()

    def _execute_update(self, conditions: list, values: dict[str, Any]) -> bool:
        statement = (
            update(FileModel)
            .where(and_(*conditions))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)
        return result.rowcount == 1

    def get_document(self, document_id: UUID) -> Optional[Document]:
        with _store_errors("read"):
            row = self._load(document_id)
        return to_document(row) if row is not None else None

    def list_documents(self, department_id: Optional[UUID] = None) -> List[Document]:
        query = select(FileModel).execution_options(populate_existing=True)
        if department_id is not None:
            query = query.where(FileModel.department_id == department_id)
        query = query.order_by(FileModel.created_at.desc())

        with _store_errors("list"):
            rows = self.db.execute(query).scalars().all()
        return [to_document(row) for row in rows]

    def create_document(self, document: Document) -> Document:
        row = FileModel(
            id=document.id,
            name=document.name,
            file_type=document.file_type,
            file_url=document.file_url,
            file_size=document.file_size,
            department_id=document.department_id,
            uploaded_by=document.owner_id,
            status=document.status,
            confidentiality=document.confidentiality.value,
            assignees=list(document.assignees),
            tags=list(document.tags),
            version_number=document.version_number,
        )
        if document.created_at is not None:
            row.created_at = document.created_at
            row.modified_at = document.modified_at or document.created_at

        with _store_errors("insert"):
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
        return to_document(row)

    def update_document(
        self,
        document_id: UUID,
        changes: dict[str, Any],
        expected_version: Optional[Decimal] = None,
        allowed_holder: Optional[UUID] = None,
        expected_confidentiality: Optional[ConfidentialityLevel] = None,
    ) -> bool:
        conditions = [FileModel.id == document_id]
        if expected_version is not None:
            conditions.append(FileModel.version_number == expected_version)
        if expected_confidentiality is not None:
            conditions.append(FileModel.confidentiality == ConfidentialityLevel(expected_confidentiality).value)
        if allowed_holder is not None:
            conditions.append(or_(
                FileModel.checked_out_by.is_(None),
                FileModel.checked_out_by == allowed_holder,
            ))

        with _store_errors("update"):
            return self._execute_update(conditions, _to_columns(changes))

    def acquire_lock(
        self,
        document_id: UUID,
        holder_id: UUID,
        acquired_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        conditions = [
            FileModel.id == document_id,
            or_(
                FileModel.checked_out_by.is_(None),
                FileModel.checked_out_by == holder_id,
            ),
        ]
        values = {
            "checked_out_by": holder_id,
            "checked_out_at": acquired_at,
            "checkout_notes": notes,
        }

        with _store_errors("lock"):
            return self._execute_update(conditions, values)

    def release_lock(
        self,
        document_id: UUID,
        holder_id: Optional[UUID] = None,
        changes: Optional[dict[str, Any]] = None,
        expected_version: Optional[Decimal] = None,
    ) -> bool:
        conditions = [FileModel.id == document_id]
        if holder_id is not None:
            conditions.append(FileModel.checked_out_by == holder_id)
        else:
            conditions.append(FileModel.checked_out_by.is_not(None))
        if expected_version is not None:
            conditions.append(FileModel.version_number == expected_version)

        values = _to_columns(changes or {})
        values.update({
            "checked_out_by": None,
            "checked_out_at": None,
            "checkout_notes": None,
        })

        with _store_errors("unlock"):
            return self._execute_update(conditions, values)

    def append_version_record(self, record: VersionRecord) -> VersionRecord:
        row = FileVersionModel(
            file_id=record.document_id,
            version_number=record.version_number,
            version_type=VersionType(record.version_type).value,
            file_url=record.file_url,
            file_size=record.file_size,
            uploaded_by=record.uploaded_by,
            change_notes=record.change_notes,
            metadata_json=record.metadata or None,
        )
        if record.uploaded_at is not None:
            row.uploaded_at = record.uploaded_at

        with _store_errors("version insert"):
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
        return to_version_record(row)

    def list_version_records(self, document_id: UUID) -> List[VersionRecord]:
        query = (
            select(FileVersionModel)
            .where(FileVersionModel.file_id == document_id)
            .order_by(FileVersionModel.version_number, FileVersionModel.uploaded_at)
        )

        with _store_errors("version list"):
            rows = self.db.execute(query).scalars().all()
            return [to_version_record(row) for row in rows]

    def list_checked_out_by(self, holder_id: UUID, department_id: Optional[UUID] = None) -> List[Document]:
        query = (
            select(FileModel)
            .where(FileModel.checked_out_by == holder_id)
            .execution_options(populate_existing=True)
        )
        if department_id is not None:
            query = query.where(FileModel.department_id == department_id)
        query = query.order_by(FileModel.checked_out_at.desc())

        with _store_errors("checkout list"):
            rows = self.db.execute(query).scalars().all()
        return [to_document(row) for row in rows]

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        try:
            yield
            with _store_errors("commit"):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
