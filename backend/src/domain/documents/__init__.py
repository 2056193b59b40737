"""Documents domain module - checkout locks, versioning, confidentiality assignment"""

from .errors import ErrorKind, ErrorCode, LifecycleError, StoreError, ConcurrentUpdateError
from .results import OperationResult
from .models import (
    VersionType,
    AssignmentMode,
    Lock,
    Document,
    VersionRecord,
    AuditEntry,
    CheckoutInfo,
    UploadPermission,
    ConfidentialityAssignment,
)
from .lock_state import LockState, LockAction, ALLOWED_ACTIONS, can_transition, evaluate
from .versioning import next_version, parse_version, format_version, INITIAL_VERSION
from .confidentiality_assignment import allowed_levels, assign_confidentiality
from .ports import DocumentStorePort, AuditSinkPort, PrincipalDirectoryPort

__all__ = [
    "ErrorKind",
    "ErrorCode",
    "LifecycleError",
    "StoreError",
    "ConcurrentUpdateError",
    "OperationResult",
    "VersionType",
    "AssignmentMode",
    "Lock",
    "Document",
    "VersionRecord",
    "AuditEntry",
    "CheckoutInfo",
    "UploadPermission",
    "ConfidentialityAssignment",
    "LockState",
    "LockAction",
    "ALLOWED_ACTIONS",
    "can_transition",
    "evaluate",
    "next_version",
    "parse_version",
    "format_version",
    "INITIAL_VERSION",
    "allowed_levels",
    "assign_confidentiality",
    "DocumentStorePort",
    "AuditSinkPort",
    "PrincipalDirectoryPort",
]
