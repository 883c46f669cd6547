"""Error Handlers — the single translation stage from failures to HTTP responses.

Invariants:
    - FolioError → its http_status with {"error": message}; 5xx messages redacted
    - RequestValidationError (malformed JSON, bad params) → 400 with field details
    - HTTPException (unknown route, wrong method) → its status with {"error": detail}
    - Exception (catch-all) → 500 {"error": "Internal server error"}, never leaks details

Design Decisions:
    - Four-layer handler: domain (FolioError), validation (Pydantic), routing
      (Starlette HTTPException), catch-all (Exception)
    - Requestor errors logged at WARNING, server errors at ERROR with traceback
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from folio.core.errors import FolioError, INTERNAL_MESSAGE

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_folio_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _request_extra(request: Request) -> dict:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": getattr(request.state, "request_id", None),
    }


def _register_folio_error_handler(app: FastAPI) -> None:
    """Register Folio domain/infrastructure error handler."""

    @app.exception_handler(FolioError)
    async def folio_error_handler(request: Request, exc: FolioError):
        """Handle all Folio domain/infrastructure errors."""
        extra = {
            **_request_extra(request),
            "error_code": exc.code,
            "collection": exc.context.collection,
            "document_id": exc.context.document_id,
        }
        if exc.is_client_error:
            logger.warning(f"FolioError: {exc.message}", extra=extra)
        else:
            logger.error(f"FolioError: {exc.message}", extra=extra, exc_info=exc)
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic request validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle malformed bodies and bad path/query parameters."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra=_request_extra(request),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register routing error handler (404 unknown path, 405 wrong method)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code >= 500:
            message = INTERNAL_MESSAGE
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            extra=_request_extra(request),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_MESSAGE},
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    fields: dict[str, str] = {}
    for e in exc.errors():
        # drop the "body"/"query"/"path" source marker
        loc = e["loc"][1:] or e["loc"][:1]
        path = ".".join(str(part) for part in loc) or "request"
        fields.setdefault(path, e["msg"])
    return {"error": "Invalid request data", "fields": fields}
