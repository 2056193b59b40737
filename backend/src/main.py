"""Document API application.

Wires the files and tasks routers behind request-ID correlation and CORS,
maps store and database failures to JSON error bodies, and serves the
client presentation settings at /ui-config.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from database import init_db
from domain.documents.errors import StoreError
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.request_id import REQUEST_ID_HEADER
from files.router import router as files_router
from tasks.router import router as tasks_router

API_TITLE = "Document API"
API_VERSION = "0.1.0"

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{API_TITLE} starting (env={settings.ENV})")
    if settings.CREATE_TABLES_ON_STARTUP:
        init_db()
        logger.info("Database tables ensured")
    yield
    logger.info(f"{API_TITLE} stopped")


_docs_enabled = settings.ENV != "production"

app = FastAPI(
    title=API_TITLE,
    description="Document access control, checkout and versioning",
    version=API_VERSION,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)
app.state.ui_config = {
    "enable_document_permissions_screen": settings.ENABLE_DOCUMENT_PERMISSIONS_SCREEN,
}

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


def _error_body(status_code: int, error: str, message: str,
                details: Optional[Any] = None) -> JSONResponse:
    content = {"error": error, "message": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query parameters"""
    logger.warning(f"Rejected request {request.method} {request.url.path}: validation failed")
    return _error_body(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


@app.exception_handler(StoreError)
async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    """The store or audit sink could not complete the operation; retryable"""
    logger.error(f"Document store failure on {request.method} {request.url.path}", exc_info=exc)
    return _error_body(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "store_unavailable",
        "The document store is unavailable. Please try again later.",
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Driver messages can carry SQL and parameters; keep them in the log only
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return _error_body(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "database_error",
        "A database error occurred. Please try again later.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return _error_body(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred. Please try again later.",
    )


app.include_router(files_router)
app.include_router(tasks_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "status": "running",
        "docs": "/docs" if _docs_enabled else None,
    }


@app.get("/ui-config", tags=["config"])
async def ui_config(request: Request) -> dict[str, Any]:
    """Presentation settings for the client.

    The core never reads these; they only drive what the client renders.
    """
    return dict(request.app.state.ui_config)


def create_app() -> FastAPI:
    """Return the configured application (used by tests and ASGI servers)"""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())
