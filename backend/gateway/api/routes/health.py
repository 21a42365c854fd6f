"""Health Probe — data-store liveness check for container orchestration.

Invariants:
    - GET /health probes the database on every call (no cached result)
    - 200 {"status": "ok"} when SELECT 1 succeeds
    - 503 {"status": "error", "detail": <probe failure>} otherwise; never raises

Design Decisions:
    - Handles its own failure instead of the error funnel: the endpoint reports
      dependency health, not application correctness
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from gateway.context import GatewayContext, get_context

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(context: GatewayContext = Depends(get_context)):
    """Liveness probe including database connectivity."""
    try:
        await context.database.ping()
    except Exception as e:
        logger.warning(
            f"Health probe failed: {e}",
            extra={"error_kind": "DependencyUnavailable", "path": "/health"},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "detail": str(e)},
        )
    return {"status": "ok"}
