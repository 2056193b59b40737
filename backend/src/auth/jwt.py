"""Bearer token verification for the document API.

Tokens are issued by the external identity system and signed with the
shared ``JWT_SECRET`` (HS256 by default). Only ``sub`` is trusted for
identity: capabilities and clearance come from the users row, so a token
minted before a clearance change cannot widen what its holder sees.

Claims:
    sub    users.id as a UUID string
    role   informational copy of users.role
    email  informational copy of users.email
    iat    issue time (unix seconds)
    exp    iat + JWT_EXPIRY_MINUTES
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID
import jwt

from config import get_settings


def _signing_key() -> str:
    key = get_settings().JWT_SECRET
    if not key:
        raise ValueError("JWT_SECRET is not configured; cannot sign or verify tokens")
    return key


def create_access_token(user_id: UUID, role: str, email: str) -> str:
    """Mint a signed token for ``user_id``.

    Used by tests and local tooling; production tokens come from the
    identity system.
    """
    settings = get_settings()
    key = _signing_key()

    issued = datetime.now(timezone.utc)
    claims = {
        'sub': str(user_id),
        'role': role,
        'email': email,
        'iat': int(issued.timestamp()),
        'exp': int((issued + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)).timestamp()),
    }
    return jwt.encode(claims, key, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry, returning the claims.

    Raises:
        jwt.ExpiredSignatureError: token is past ``exp``
        jwt.InvalidTokenError: malformed or wrongly signed token
        ValueError: JWT_SECRET is not configured
    """
    return jwt.decode(token, _signing_key(), algorithms=[get_settings().JWT_ALGORITHM])
