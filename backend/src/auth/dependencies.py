"""Request identity for the document and task routes.

``get_current_principal`` is what routes depend on: it verifies the bearer
token, loads the users row named by ``sub`` and derives capabilities and
clearance from that row.

Usage:
    @router.get("/files")
    def list_files(principal: CurrentPrincipal):
        ...
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from domain.access.models import Principal
from infrastructure.repositories.user_repository import UserRepository
from models.user import User
from .jwt import decode_token


# auto_error=False: a missing header is answered with 401 rather than 403
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject_of(token: str) -> UUID:
    """User id carried in ``sub``; any verification failure is a 401"""
    try:
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {e}")

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Invalid token: missing user ID claim")
    try:
        return UUID(subject)
    except ValueError:
        raise _unauthorized("Invalid token: subject is not a user ID")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """The users row for the bearer token.

    Raises:
        HTTPException 401: no token, a token that fails verification, or a
            subject with no users row
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    user = UserRepository(db).get_user(_subject_of(credentials.credentials))
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(current_user)


CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
