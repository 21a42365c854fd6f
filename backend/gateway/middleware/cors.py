"""Origin Policy Middleware — applies OriginPolicy to each request and answers preflights.

Invariants:
    - A denied Origin raises ForbiddenOriginError before the router runs
    - OPTIONS requests that pass the policy get 204 with an empty body and never reach the router
    - Allowed permission headers are recorded on RequestContext.cors_headers so the
      error funnel can keep them on error envelopes
"""

import logging

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.core.errors import ForbiddenOriginError
from gateway.core.origin_policy import OriginPolicy
from gateway.core.request_context import bind_request_context

logger = logging.getLogger(__name__)


def apply_cors_headers(headers: MutableHeaders, cors_headers: dict[str, str]) -> None:
    """Merge permission headers, appending Origin to an existing Vary."""
    for name, value in cors_headers.items():
        if name == "Vary":
            vary = headers.get("vary")
            if vary is None:
                headers["Vary"] = value
            elif value.lower() not in vary.lower():
                headers["Vary"] = f"{vary}, {value}"
        else:
            headers.setdefault(name, value)


class CORSPolicyMiddleware:
    def __init__(self, app: ASGIApp, policy: OriginPolicy):
        self.app = app
        self.policy = policy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ctx = bind_request_context(scope)
        if not self.policy.evaluate(ctx.origin):
            logger.warning(
                f"Origin rejected: {ctx.origin}",
                extra={"origin": ctx.origin, "method": ctx.method, "path": ctx.path},
            )
            raise ForbiddenOriginError(ctx.origin)

        if ctx.method == "OPTIONS":
            preflight = Response(
                status_code=204, headers=self.policy.preflight_headers(ctx.origin),
            )
            await preflight(scope, receive, send)
            return

        ctx.cors_headers = self.policy.response_headers(ctx.origin)

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                apply_cors_headers(MutableHeaders(scope=message), ctx.cors_headers)
            await send(message)

        await self.app(scope, receive, send_with_cors)
