"""Metrics Instrumentor — one observation per request, whichever stage ends it.

Invariants:
    - Exactly one observe() per http request, in a finally block after the
      inner stack returned or raised
    - Status is taken from the response start message; a request that raised
      before any response started is recorded as 500
    - Labels use the route template (/api/items/{item_id}), never the concrete path
    - Template lookup is a pure match against RouteTemplateIndex and cannot fail a request

Design Decisions:
    - Installed outermost so origin denials and body decode failures are counted too
    - Template resolved before dispatch, so requests that never reach the router
      still carry the template of the route they were aimed at
"""

import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.api.router import RouteTemplateIndex
from gateway.core.request_context import bind_request_context
from gateway.infrastructure.metrics import MetricsRegistry


class MetricsMiddleware:
    def __init__(self, app: ASGIApp, metrics: MetricsRegistry, templates: RouteTemplateIndex):
        self.app = app
        self.metrics = metrics
        self.templates = templates

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ctx = bind_request_context(scope)
        ctx.started_at = time.perf_counter()
        ctx.route_template = self.templates.resolve(ctx.method, ctx.path)
        status_code = 500

        async def send_with_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            self.metrics.observe(
                ctx.method, ctx.route_template, status_code,
                time.perf_counter() - ctx.started_at,
            )
