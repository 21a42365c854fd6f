"""Gateway Context — the explicitly constructed state shared by every pipeline stage.

Invariants:
    - Built once per application by build_context(); never a module global
    - origin_policy is immutable; metrics is the only mutable shared state
    - database and bootstrap are collaborators reached only through their contracts
      (ping/dispose and an awaitable taking the context)

Design Decisions:
    - Injected into create_app() so tests swap collaborators without monkeypatching
      (ADR: no global import side effects)
    - BOOTSTRAP_TARGET resolved with uvicorn's import_from_string: same
      "module:attr" convention as the server's app target
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from fastapi import Request
from uvicorn.importer import import_from_string

from gateway.config import Settings
from gateway.core.origin_policy import OriginPolicy
from gateway.core.startup_sequence import StartupSequencer
from gateway.infrastructure.database import DatabaseSessionManager
from gateway.infrastructure.metrics import MetricsRegistry

logger = logging.getLogger(__name__)

ContextBootstrap = Callable[["GatewayContext"], Awaitable[Any]]


@dataclass
class GatewayContext:
    settings: Settings
    origin_policy: OriginPolicy
    metrics: MetricsRegistry
    database: DatabaseSessionManager
    bootstrap: ContextBootstrap | None = None
    sequencer: StartupSequencer = field(init=False)

    def __post_init__(self):
        bootstrap = self.bootstrap
        self.sequencer = StartupSequencer(
            (lambda: bootstrap(self)) if bootstrap else None,
        )


def build_context(
    settings: Settings,
    *,
    database: DatabaseSessionManager | None = None,
    metrics: MetricsRegistry | None = None,
    bootstrap: ContextBootstrap | None = None,
) -> GatewayContext:
    """Assemble the context from settings, resolving defaults for omitted collaborators."""
    if settings.cors_allow_any_origin:
        logger.warning(
            "CORS_ALLOW_ANY_ORIGIN is enabled: every Origin will be allowed",
            extra={"origin": "*"},
        )
    if bootstrap is None and settings.bootstrap_target:
        bootstrap = import_from_string(settings.bootstrap_target)
    return GatewayContext(
        settings=settings,
        origin_policy=OriginPolicy(
            allow_list=settings.allowed_origins,
            permissive=settings.cors_allow_any_origin,
        ),
        metrics=metrics or MetricsRegistry(),
        database=database or DatabaseSessionManager(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        ),
        bootstrap=bootstrap,
    )


def get_context(request: Request) -> GatewayContext:
    """FastAPI dependency returning the app's GatewayContext."""
    return request.app.state.context
