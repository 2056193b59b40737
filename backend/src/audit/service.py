"""Audit logging service for document lifecycle events.

This service provides a centralized interface for creating immutable audit log
entries. Every state-changing action on a file goes through it.

Audit Events:
- file_uploaded
- checked_out, checked_in, checkout_cancelled
- version_uploaded
- confidentiality_changed
"""

import logging
from typing import Optional, Dict, Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.audit_log import AuditLog
from domain.documents.errors import StoreError
from domain.documents.models import AuditEntry
from domain.documents.ports import AuditSinkPort

logger = logging.getLogger(__name__)


class AuditAction:
    """Action names written to audit_log.action"""
    FILE_UPLOADED = "file_uploaded"
    CHECKED_OUT = "checked_out"
    CHECKED_IN = "checked_in"
    CHECKOUT_CANCELLED = "checkout_cancelled"
    VERSION_UPLOADED = "version_uploaded"
    CONFIDENTIALITY_CHANGED = "confidentiality_changed"


def log_audit_event(
    db: Session,
    action: str,
    entity_id: UUID,
    entity_type: str = "file",
    user_id: Optional[UUID] = None,
    department_id: Optional[UUID] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Create an audit log entry.

    All parameters are stored as-is. This function does not validate action
    names - callers should use the AuditAction constants.

    Args:
        db: Database session
        action: Event action (e.g., "checked_out", "version_uploaded")
        entity_id: ID of affected entity
        entity_type: Type of entity affected (e.g., "file")
        user_id: User who performed the action (None for system events)
        department_id: Department the entity belongs to
        details: Additional context as JSON (e.g., {"version_from": "1.0", "version_to": "1.1"})

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_audit_event(
            db=db,
            action=AuditAction.CHECKED_OUT,
            entity_id=file.id,
            user_id=current_user.id,
            details={"file_name": file.name, "version": "1.0"}
        )
    """
    audit_entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        department_id=department_id,
        details=details,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry


class AuditLogSink(AuditSinkPort):
    """Audit sink writing AuditEntry values to the audit_log table.

    Each entry is committed on its own so that a failing audit write never
    affects the lifecycle change it describes.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(self, entry: AuditEntry) -> None:
        try:
            log_audit_event(
                db=self.db,
                action=entry.action,
                entity_id=entry.entity_id,
                entity_type=entry.entity_type,
                user_id=entry.actor_id,
                department_id=entry.department_id,
                details=entry.details,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to write audit entry '{entry.action}'") from e
