"""Middleware Pipeline — request stages that run before routing, in registration order.

Invariants:
    - Every response carries X-Request-ID (echoed from the request or generated)
    - Every request logs one request_done/request_failed line with its duration
    - Paths reach the router without a trailing slash ("/api/v1/books/" → "/api/v1/books")
    - Middleware never formats error responses: failures propagate to error_handlers

Design Decisions:
    - Request context as BaseHTTPMiddleware: needs the Response to stamp headers
    - Trailing-slash normalization as raw ASGI: rewrites scope before Starlette's
      router sees it, no redirect round-trip
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id and log the outcome of every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        extra = {
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
        try:
            response = await call_next(request)
        except Exception:
            extra["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
            logger.error("request_failed", extra=extra)
            raise
        response.headers[REQUEST_ID_HEADER] = request_id
        extra["status_code"] = response.status_code
        extra["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
        logger.info("request_done", extra=extra)
        return response


class StripTrailingSlashMiddleware:
    """Route "/x/" exactly like "/x"."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            path = scope["path"]
            if len(path) > 1 and path.endswith("/"):
                scope = dict(scope)
                scope["path"] = path.rstrip("/") or "/"
                raw_path = scope.get("raw_path")
                if raw_path:
                    scope["raw_path"] = raw_path.rstrip(b"/") or b"/"
        await self.app(scope, receive, send)


def register_middleware(app: FastAPI) -> None:
    """Install the pipeline; the last added runs first on the way in."""
    app.add_middleware(StripTrailingSlashMiddleware)
    app.add_middleware(RequestContextMiddleware)
