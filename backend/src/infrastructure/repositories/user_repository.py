"""Principal directory backed by the users table"""

from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.user import User
from domain.access.models import Principal
from domain.documents.errors import StoreError
from domain.documents.ports import PrincipalDirectoryPort


class UserRepository(PrincipalDirectoryPort):
    """Read-only access to principals.

    Users are owned by the identity system; this repository never writes.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: UUID) -> Optional[User]:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise StoreError("Principal lookup failed") from e

    def get_principal(self, user_id: UUID) -> Optional[Principal]:
        user = self.get_user(user_id)
        return Principal.from_user(user) if user is not None else None
