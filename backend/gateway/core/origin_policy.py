"""Origin Policy — pure CORS allow/deny decision and response header computation.

Invariants:
    - No Origin header (same-origin / server-to-server) is always allowed
    - allow_list is an immutable tuple, built once at startup
    - permissive mode allows every origin and is only ever enabled explicitly
    - Preflight headers always carry the full method and header lists

Design Decisions:
    - Pure module (no Starlette imports): the ASGI layer in middleware/cors.py
      only translates decisions into responses (ADR: ExMA impureim sandwich)
"""

from dataclasses import dataclass

ALLOWED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization")


@dataclass(frozen=True)
class OriginPolicy:
    """Allow-list plus the explicit permissive-mode switch."""

    allow_list: tuple[str, ...]
    permissive: bool = False

    def evaluate(self, origin: str | None) -> bool:
        """Return True when a response may be shared with ``origin``."""
        if not origin:
            return True
        if origin in self.allow_list:
            return True
        return self.permissive

    def response_headers(self, origin: str | None) -> dict[str, str]:
        """Headers attached to every allowed response."""
        headers = {"Access-Control-Allow-Credentials": "true"}
        if origin:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
        return headers

    def preflight_headers(self, origin: str | None) -> dict[str, str]:
        """Headers for the short-circuited OPTIONS response."""
        headers = self.response_headers(origin)
        headers["Access-Control-Allow-Methods"] = ", ".join(ALLOWED_METHODS)
        headers["Access-Control-Allow-Headers"] = ", ".join(ALLOWED_HEADERS)
        return headers
