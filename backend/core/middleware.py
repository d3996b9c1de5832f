"""Request tracking middleware and exception handlers.

Every response carries ``X-Request-ID`` (taken from the request when the
caller sent one) and ``X-Process-Time``. ``AutomationError`` subclasses map
to their own status code; anything else that escapes a route becomes a 500.
Error bodies are ``{"detail": ..., "request_id": ...}``.
"""

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from core.exceptions import AutomationError

logger = logging.getLogger(__name__)

_UNLOGGED_PATHS = frozenset({"/api/v1/health", "/api/v1/health/ready"})


def _error_body(request: Request, detail: str) -> dict:
    return {"detail": detail, "request_id": getattr(request.state, "request_id", None)}


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Tag requests with an id, time them and log the outcome."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
                extra={"request_id": request_id, "error": str(exc)},
                exc_info=True,
            )
            detail = "Internal server error"
            if not get_settings().is_production:
                detail = str(exc) or detail
            response = JSONResponse(status_code=500, content=_error_body(request, detail))

        elapsed_ms = (time.monotonic() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"

        if request.url.path not in _UNLOGGED_PATHS:
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)",
                extra={"request_id": request_id, "status_code": response.status_code},
            )
        return response


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on the app."""

    @app.exception_handler(AutomationError)
    async def automation_error_handler(request: Request, exc: AutomationError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content=_error_body(request, str(exc)))
