"""API Layer — routes, route-group mounting and the error funnel.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All client-visible errors leave through api/error_funnel.py

Design Decisions:
    - Thin routes delegate to context collaborators (ADR: ExMA impureim sandwich)
"""
