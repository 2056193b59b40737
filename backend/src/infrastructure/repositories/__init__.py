"""SQLAlchemy adapters for the document domain ports"""

from .file_repository import FileRepository
from .user_repository import UserRepository

__all__ = ["FileRepository", "UserRepository"]
