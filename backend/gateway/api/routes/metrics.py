"""Prometheus scrape endpoint for the context's metrics registry."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from gateway.context import GatewayContext, get_context

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics(context: GatewayContext = Depends(get_context)):
    return Response(context.metrics.render(), media_type=context.metrics.content_type)
