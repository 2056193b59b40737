"""Per-request correlation ID.

The middleware binds an ID for the lifetime of each request; log records
pick it up through RequestIDFilter. A ContextVar keeps concurrent requests
apart.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    """The bound ID, or ``"no-request-id"`` outside a request"""
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> Token:
    """Bind ``request_id``; hand the token back to ``reset_request_id``"""
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)
