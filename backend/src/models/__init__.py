"""SQLAlchemy models for the document backend"""

from .base import Base
from .user import User
from .file import File
from .file_version import FileVersion
from .audit_log import AuditLog
from .task import Task

__all__ = [
    "Base",
    "User",
    "File",
    "FileVersion",
    "AuditLog",
    "Task",
]
