"""Gateway API — FastAPI application entry point.

Invariants:
    - Pipeline order fixed here, outermost first: metrics → security headers →
      error funnel → CORS → body decoder → router
    - Routes registered explicitly; the not-found fallback is always registered last
    - Bootstrap is awaited in the lifespan, before uvicorn binds the listener,
      and its failure never prevents startup
    - Unobserved asyncio failures terminate the process with exit code 1

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app(context, route_groups) factory: tests inject collaborators, the
      module-level app serves `uvicorn gateway.main:app`
"""

import logging
from contextlib import asynccontextmanager
from typing import Sequence

import uvicorn
from fastapi import APIRouter, FastAPI

from gateway.api.error_funnel import ErrorFunnelMiddleware, register_error_funnel
from gateway.api.router import (
    RouteTemplateIndex, include_routes, install_not_found_fallback, mount_route_groups,
)
from gateway.api.routes import health, metrics, status
from gateway.config import get_settings
from gateway.context import GatewayContext, build_context
from gateway.infrastructure.fault_escalation import install_fault_escalation
from gateway.infrastructure.observability import setup_logging
from gateway.infrastructure.server import GatewayServer
from gateway.middleware.body_decoder import BodyDecoderMiddleware
from gateway.middleware.cors import CORSPolicyMiddleware
from gateway.middleware.metrics import MetricsMiddleware
from gateway.middleware.security_headers import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_GROUPS = (status.router,)


def create_app(
    context: GatewayContext | None = None,
    route_groups: Sequence[APIRouter] | None = None,
) -> FastAPI:
    context = context or build_context(get_settings())
    settings = context.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        install_fault_escalation()
        await context.sequencer.run_bootstrap()
        logger.info(f"{settings.app_name} started")
        yield
        await context.database.dispose()
        logger.info(f"{settings.app_name} shutting down")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/documentation",
        redoc_url=None,
        openapi_url="/documentation/openapi.json",
    )
    app.state.context = context
    templates = RouteTemplateIndex()
    templates.add(app.openapi_url, ["GET"])
    templates.add(app.docs_url, ["GET"])

    # add_middleware wraps outward: the last one added sees the request first
    app.add_middleware(BodyDecoderMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(CORSPolicyMiddleware, policy=context.origin_policy)
    app.add_middleware(ErrorFunnelMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(MetricsMiddleware, metrics=context.metrics, templates=templates)

    register_error_funnel(app)

    # Routes: explicit registration, fallback last
    include_routes(app, health.router, templates)
    include_routes(app, metrics.router, templates)
    mount_route_groups(
        app, DEFAULT_ROUTE_GROUPS if route_groups is None else route_groups, templates,
    )
    install_not_found_fallback(app)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    context: GatewayContext = app.state.context
    settings = context.settings
    config = uvicorn.Config(
        app, host=settings.host, port=settings.port, log_config=None,
    )
    GatewayServer(config, context.sequencer, settings.node_env).run()


if __name__ == "__main__":
    run()
