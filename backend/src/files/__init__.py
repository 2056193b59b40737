"""File management: lifecycle service, API schemas and router."""

from .service import DocumentLifecycleService

__all__ = ["DocumentLifecycleService"]
