"""Fault Escalation — turns unobserved asyncio failures into a loud process exit.

Invariants:
    - A loop exception-handler call carrying an Exception is logged at CRITICAL
      with full traceback, then the process exits with status 1
    - Calls without an exception (asyncio housekeeping such as destroyed pending
      tasks or unclosed transports) are logged at ERROR and handed to the loop's
      default handler; the process keeps running
    - This is the only code path allowed to terminate the process

Design Decisions:
    - os._exit after flushing log handlers: sys.exit inside a loop callback would
      only raise SystemExit into the loop, not stop the process
"""

import asyncio
import logging
import os
from typing import Any, Callable

logger = logging.getLogger(__name__)

FAULT_EXIT_CODE = 1


def _flush_logging() -> None:
    for handler in logging.root.handlers:
        handler.flush()


def make_fault_handler(
    exit_fn: Callable[[int], Any] = os._exit,
) -> Callable[[asyncio.AbstractEventLoop, dict], None]:
    """Build a loop exception handler that logs then exits on real failures."""

    def handle_fault(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        if not isinstance(exc, Exception):
            logger.error(
                f"Event loop diagnostic: {message}",
                extra={"error_kind": "LoopDiagnostic"},
            )
            loop.default_exception_handler(context)
            return
        logger.critical(
            f"Unhandled async fault, shutting down: {message}",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"error_kind": "UnhandledAsyncFault"},
        )
        _flush_logging()
        exit_fn(FAULT_EXIT_CODE)

    return handle_fault


def install_fault_escalation(
    loop: asyncio.AbstractEventLoop | None = None,
    exit_fn: Callable[[int], Any] = os._exit,
) -> None:
    """Install the fatal exception handler on ``loop`` (default: running loop)."""
    loop = loop or asyncio.get_running_loop()
    loop.set_exception_handler(make_fault_handler(exit_fn))
