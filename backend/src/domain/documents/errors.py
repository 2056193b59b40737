"""Error taxonomy for the document lifecycle.

Business-rule violations are values (``LifecycleError`` inside an
``OperationResult``), never raised. Only infrastructure failures raise
(``StoreError``).
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Broad failure categories surfaced to callers."""
    VALIDATION = "validation"   # Caller data violates an invariant
    PERMISSION = "permission"   # Principal lacks rights for the transition
    CONFLICT = "conflict"       # Lock/version state prevents the transition
    NOT_FOUND = "not_found"     # Referenced document is absent


class ErrorCode(str, Enum):
    """Specific failure reasons."""
    INVALID_LEVEL = "INVALID_LEVEL"
    MISSING_ASSIGNEES = "MISSING_ASSIGNEES"
    INVALID_FILE = "INVALID_FILE"
    FORBIDDEN = "FORBIDDEN"
    NOT_HOLDER = "NOT_HOLDER"
    UNAUTHORIZED = "UNAUTHORIZED"
    ALREADY_LOCKED_BY_OTHER = "ALREADY_LOCKED_BY_OTHER"
    LOCKED_BY_OTHER = "LOCKED_BY_OTHER"
    NOT_LOCKED = "NOT_LOCKED"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    NOT_FOUND = "NOT_FOUND"


ERROR_KINDS = {
    ErrorCode.INVALID_LEVEL: ErrorKind.VALIDATION,
    ErrorCode.MISSING_ASSIGNEES: ErrorKind.VALIDATION,
    ErrorCode.INVALID_FILE: ErrorKind.VALIDATION,
    ErrorCode.FORBIDDEN: ErrorKind.PERMISSION,
    ErrorCode.NOT_HOLDER: ErrorKind.PERMISSION,
    ErrorCode.UNAUTHORIZED: ErrorKind.PERMISSION,
    ErrorCode.ALREADY_LOCKED_BY_OTHER: ErrorKind.CONFLICT,
    ErrorCode.LOCKED_BY_OTHER: ErrorKind.CONFLICT,
    ErrorCode.NOT_LOCKED: ErrorKind.CONFLICT,
    ErrorCode.CONCURRENT_MODIFICATION: ErrorKind.CONFLICT,
    ErrorCode.NOT_FOUND: ErrorKind.NOT_FOUND,
}


@dataclass(frozen=True)
class LifecycleError:
    """A rejected operation, with a message suitable for direct display."""
    code: ErrorCode
    message: str

    @property
    def kind(self) -> ErrorKind:
        return ERROR_KINDS[self.code]

    def to_dict(self) -> dict:
        return {
            "error": self.code.value,
            "kind": self.kind.value,
            "message": self.message,
        }


class StoreError(Exception):
    """The document store or audit sink is unreachable or rejected a write."""
    pass


class ConcurrentUpdateError(Exception):
    """A conditional write matched no row; used to abort a store transaction."""
    pass


def not_found() -> LifecycleError:
    return LifecycleError(ErrorCode.NOT_FOUND, "File not found")
