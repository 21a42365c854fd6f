"""Service Status — built-in /api route group describing the running service.

Only the bootstrap failure's exception type is reported; its message may carry
connection details and stays in the server log.
"""

from fastapi import APIRouter, Depends

from gateway.context import GatewayContext, get_context

router = APIRouter(prefix="/v1/status", tags=["status"])


@router.get("")
async def service_status(context: GatewayContext = Depends(get_context)):
    settings = context.settings
    bootstrap_error = context.sequencer.bootstrap_error
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.node_env,
        "startup_state": context.sequencer.state.value,
        "bootstrap_error": type(bootstrap_error).__name__ if bootstrap_error else None,
    }
