"""Startup Sequencer — one-shot bootstrap before the listener binds.

Invariants:
    - NOT_STARTED → BOOTSTRAP_RUNNING → (BOOTSTRAP_FAILED | BOOTSTRAP_OK) → LISTENING
    - run_bootstrap() never raises: bootstrap failure is logged, not fatal
    - LISTENING is terminal; any other transition raises StartupSequenceError

Design Decisions:
    - Availability over consistency: a transient bootstrap failure must not keep
      the service from serving traffic (ADR: startup resilience)
    - Bootstrap is awaited inside the lifespan, never left as a background task
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Bootstrap = Callable[[], Awaitable[Any]]


class StartupState(str, Enum):
    NOT_STARTED = "not_started"
    BOOTSTRAP_RUNNING = "bootstrap_running"
    BOOTSTRAP_FAILED = "bootstrap_failed"
    BOOTSTRAP_OK = "bootstrap_ok"
    LISTENING = "listening"


_TRANSITIONS: dict[StartupState, tuple[StartupState, ...]] = {
    StartupState.NOT_STARTED: (StartupState.BOOTSTRAP_RUNNING,),
    StartupState.BOOTSTRAP_RUNNING: (
        StartupState.BOOTSTRAP_FAILED, StartupState.BOOTSTRAP_OK,
    ),
    StartupState.BOOTSTRAP_FAILED: (StartupState.LISTENING,),
    StartupState.BOOTSTRAP_OK: (StartupState.LISTENING,),
    StartupState.LISTENING: (),
}


class StartupSequenceError(RuntimeError):
    """Illegal startup state transition."""


class StartupSequencer:
    """Tracks the process startup state machine."""

    def __init__(self, bootstrap: Bootstrap | None = None):
        self._bootstrap = bootstrap
        self.state = StartupState.NOT_STARTED
        self.bootstrap_error: BaseException | None = None

    def _transition(self, target: StartupState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise StartupSequenceError(
                f"Cannot move from {self.state.value} to {target.value}",
            )
        logger.debug(
            f"Startup state {self.state.value} -> {target.value}",
            extra={"startup_state": target.value},
        )
        self.state = target

    async def run_bootstrap(self) -> bool:
        """Run the bootstrap once. Returns True on success."""
        self._transition(StartupState.BOOTSTRAP_RUNNING)
        if self._bootstrap is None:
            logger.info("No bootstrap configured")
            self._transition(StartupState.BOOTSTRAP_OK)
            return True
        try:
            await self._bootstrap()
        except Exception as e:
            self.bootstrap_error = e
            logger.error(
                f"Bootstrap failed: {e}",
                exc_info=True,
                extra={"startup_state": StartupState.BOOTSTRAP_FAILED.value},
            )
            self._transition(StartupState.BOOTSTRAP_FAILED)
            return False
        self._transition(StartupState.BOOTSTRAP_OK)
        logger.info("Bootstrap completed")
        return True

    def mark_listening(self, port: int, mode: str) -> None:
        """Record that the listener is bound and accepting connections."""
        self._transition(StartupState.LISTENING)
        logger.info(
            f"Server running in {mode} mode on port {port}",
            extra={"startup_state": self.state.value},
        )
