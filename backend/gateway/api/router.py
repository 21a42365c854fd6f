"""Route Group Mounting — ordered registration of application routers under /api.

Invariants:
    - Groups are included in the order given; Starlette matching is first-match-wins
    - The not-found fallback is registered last and matches every method and path,
      so a method mismatch on a known path is a 404 like any other unmatched request
    - Unmatched requests raise NotFoundError("Cannot <METHOD> <URL>"); this module never responds itself
    - Every mounted route's template is recorded, in order, in a RouteTemplateIndex

Design Decisions:
    - Metrics labels come from RouteTemplateIndex, not from walking app.router.routes:
      the shape of FastAPI's internal route table differs across releases
"""

import re
from dataclasses import dataclass
from typing import Iterable

from fastapi import APIRouter, FastAPI, Request
from starlette.routing import compile_path

from gateway.core.errors import NotFoundError

API_PREFIX = "/api"
NOT_FOUND_ROUTE_NAME = "not_found"


@dataclass(frozen=True)
class RouteTemplate:
    template: str
    pattern: re.Pattern
    methods: frozenset[str] | None

    def matches(self, method: str, path: str) -> bool:
        if not self.pattern.match(path):
            return False
        return self.methods is None or method in self.methods


class RouteTemplateIndex:
    """Ordered record of mounted route templates, used to label metrics."""

    def __init__(self):
        self._entries: list[RouteTemplate] = []

    def add(self, path: str, methods: Iterable[str] | None = None) -> None:
        pattern, template, _ = compile_path(path)
        allowed = None
        if methods:
            allowed = {m.upper() for m in methods}
            if "GET" in allowed:
                allowed.add("HEAD")
        self._entries.append(
            RouteTemplate(template, pattern, frozenset(allowed) if allowed else None),
        )

    def add_router(self, router: APIRouter, prefix: str = "") -> None:
        for route in router.routes:
            path = getattr(route, "path", None)
            if isinstance(path, str):
                self.add(prefix + path, getattr(route, "methods", None))

    def resolve(self, method: str, path: str) -> str | None:
        """Template of the first route matching both method and path, else None."""
        for entry in self._entries:
            if entry.matches(method, path):
                return entry.template
        return None

    def __len__(self) -> int:
        return len(self._entries)


def include_routes(
    app: FastAPI, router: APIRouter, templates: RouteTemplateIndex, prefix: str = "",
) -> None:
    app.include_router(router, prefix=prefix)
    templates.add_router(router, prefix)


def mount_route_groups(
    app: FastAPI, groups: Iterable[APIRouter], templates: RouteTemplateIndex,
) -> None:
    for group in groups:
        include_routes(app, group, templates, prefix=API_PREFIX)


def install_not_found_fallback(app: FastAPI) -> None:
    async def not_found(request: Request):
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        raise NotFoundError(request.method, url)

    # Plain Starlette route with no method filter: any verb is a full match
    app.router.add_route(
        "/{path:path}",
        not_found,
        methods=None,
        name=NOT_FOUND_ROUTE_NAME,
        include_in_schema=False,
    )
