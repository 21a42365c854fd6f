"""Database Manager — async engine ownership and the liveness probe.

Invariants:
    - ping() issues exactly one trivial query per call and never caches its result
    - Every connectivity or driver failure during ping() surfaces as DatabaseError,
      chained to the original exception

Design Decisions:
    - Owned by GatewayContext instead of a module singleton (ADR: injected context)
    - Pool sizing only applied to pooled backends; SQLite uses SQLAlchemy's defaults
    - Engine creation is lazy about connecting: no I/O until the first probe
"""

import logging

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from gateway.core.errors import DatabaseError

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Owns the async engine used by health probes and the bootstrap collaborator."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if make_url(database_url).get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)

    async def ping(self) -> None:
        """Run SELECT 1. Raises DatabaseError on any connectivity failure."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.debug(f"DB ping failed: {e}")
            raise DatabaseError(str(e), "ping") from e

    async def dispose(self) -> None:
        await self.engine.dispose()
