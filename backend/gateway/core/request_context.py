"""Request Context — per-request input plus annotations added by pipeline stages.

Invariants:
    - One RequestContext per ASGI http scope, stored at scope["state"]["ctx"]
    - Input fields (method, path, headers, origin) are never reassigned
    - Annotations (started_at, route_template, cors_headers, body) are written
      only by the stage that owns them

Design Decisions:
    - Lives in scope state so handlers read it as request.state.ctx
      (Starlette's Request.state is backed by scope["state"])
"""

import time
from dataclasses import dataclass, field
from typing import Any

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import Scope


@dataclass
class RequestContext:
    method: str
    path: str
    headers: Headers
    origin: str | None = None
    body: Any = None
    started_at: float = field(default_factory=time.perf_counter)
    route_template: str | None = None
    cors_headers: dict[str, str] = field(default_factory=dict)


def bind_request_context(scope: Scope) -> RequestContext:
    """Return the scope's RequestContext, creating it on first use."""
    state = scope.setdefault("state", {})
    ctx = state.get("ctx")
    if ctx is None:
        headers = Headers(scope=scope)
        ctx = RequestContext(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            headers=headers,
            origin=headers.get("origin"),
        )
        state["ctx"] = ctx
    return ctx


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency for handlers that need the decoded body."""
    return bind_request_context(request.scope)
