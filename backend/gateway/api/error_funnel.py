"""Error Funnel — the single place where failures become client responses.

Invariants:
    - Every client-visible error has the shape {"statusCode": int, "message": str}
    - Exactly one diagnostic log record per funneled failure, at the GatewayError's
      severity with its code and category attached; tracebacks only for
      unexpected faults, and never in the response
    - render_error() never raises: a formatting failure falls back to a hardcoded 500
    - Exceptions after the response started are logged and re-raised to the server

Design Decisions:
    - build_envelope() is a pure function (exception → status, envelope), trivially testable
      without a server (ADR: Result → Response)
    - ErrorFunnelMiddleware catches everything raised by inner stages and handlers;
      the same render_error() backs FastAPI's RequestValidationError and
      HTTPException handlers, which fire inside the router
"""

import logging
from http import HTTPStatus
from typing import Mapping

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.core.errors import ErrorSeverity, GatewayError
from gateway.core.request_context import bind_request_context

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Internal Server Error"
FALLBACK_BODY = b'{"statusCode":500,"message":"Internal Server Error"}'
SEVERITY_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def build_envelope(exc: BaseException) -> tuple[int, dict, dict[str, str]]:
    """Classify ``exc`` into (status, envelope, extra response headers)."""
    if isinstance(exc, GatewayError):
        return exc.status_code, exc.to_envelope(), {}
    if isinstance(exc, RequestValidationError):
        return 400, {"statusCode": 400, "message": "Invalid request data"}, {}
    if isinstance(exc, StarletteHTTPException):
        status = exc.status_code if exc.status_code >= 100 else 500
        message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(status).phrase
        return status, {"statusCode": status, "message": message}, dict(exc.headers or {})
    return 500, {"statusCode": 500, "message": GENERIC_MESSAGE}, {}


def _condition_kind(exc: BaseException) -> str:
    if isinstance(exc, (GatewayError, RequestValidationError, StarletteHTTPException)):
        return type(exc).__name__
    return "UnexpectedFault"


def _log_condition(exc: BaseException, status: int, message: str, method: str, path: str) -> None:
    kind = _condition_kind(exc)
    extra = {"error_kind": kind, "status_code": status, "method": method, "path": path}
    if isinstance(exc, GatewayError):
        extra.update(error_code=exc.code, error_category=exc.category.value)
        logger.log(SEVERITY_LEVELS[exc.severity], f"{kind}: {message}", extra=extra)
    elif kind == "UnexpectedFault":
        logger.error(
            f"Unhandled exception on {method} {path}: {exc!r}",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra=extra,
        )
    elif isinstance(exc, RequestValidationError):
        logger.warning(f"Validation error on {path}: {exc.errors()}", extra=extra)
    elif status >= 500:
        logger.error(f"{kind}: {message}", extra=extra)
    else:
        logger.warning(f"{kind}: {message}", extra=extra)


def render_error(
    exc: BaseException,
    method: str,
    path: str,
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Log ``exc`` and build its envelope response. Never raises."""
    try:
        status, envelope, extra_headers = build_envelope(exc)
        _log_condition(exc, status, envelope["message"], method, path)
        return JSONResponse(
            status_code=status,
            content=envelope,
            headers={**(headers or {}), **extra_headers},
        )
    except Exception:
        logger.critical("Error funnel failed while formatting envelope", exc_info=True)
        return Response(FALLBACK_BODY, status_code=500, media_type="application/json")


class ErrorFunnelMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking)
        except Exception as exc:
            ctx = bind_request_context(scope)
            if response_started:
                logger.error(
                    f"Exception after response started on {ctx.method} {ctx.path}",
                    exc_info=True,
                    extra={"error_kind": "UnexpectedFault", "path": ctx.path},
                )
                raise
            response = render_error(exc, ctx.method, ctx.path, ctx.cors_headers)
            await response(scope, receive, send)


def register_error_funnel(app: FastAPI) -> None:
    """Route FastAPI's in-router exceptions through render_error()."""

    async def funnel_handler(request: Request, exc: Exception) -> Response:
        ctx = bind_request_context(request.scope)
        return render_error(exc, ctx.method, ctx.path, ctx.cors_headers)

    app.add_exception_handler(RequestValidationError, funnel_handler)
    app.add_exception_handler(StarletteHTTPException, funnel_handler)
