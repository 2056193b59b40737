"""Request correlation and structured logging for the document API"""

from .logging_config import configure_logging, get_logger
from .request_id import (
    REQUEST_ID_HEADER,
    request_id_var,
    generate_request_id,
    get_request_id,
    set_request_id,
    reset_request_id,
)
from .middleware import RequestIDMiddleware

__all__ = [
    "configure_logging",
    "get_logger",
    "REQUEST_ID_HEADER",
    "request_id_var",
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    "reset_request_id",
    "RequestIDMiddleware",
]
