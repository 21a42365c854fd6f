"""Middleware Layer — pure ASGI stages of the request pipeline.

Invariants:
    - Every stage passes non-http scopes (lifespan, websocket) through untouched
    - Stages annotate the shared RequestContext; none of them writes an error envelope
    - Order is fixed in main.create_app(), outermost first:
      metrics → security headers → error funnel → CORS → body decoder → router

Design Decisions:
    - Pure ASGI over BaseHTTPMiddleware: exceptions propagate unwrapped to the funnel
      and the metrics observer sees the final status exactly once
"""
