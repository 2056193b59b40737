"""Explicit success/failure result returned by lifecycle operations"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import LifecycleError

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a lifecycle or confidentiality operation.

    Exactly one of ``value`` (on success, may be None for operations with
    nothing to return) or ``error`` is meaningful.
    """
    success: bool
    value: Optional[T] = None
    error: Optional[LifecycleError] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: LifecycleError) -> "OperationResult[T]":
        return cls(success=False, error=error)
