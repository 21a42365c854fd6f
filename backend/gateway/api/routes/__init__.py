"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with tags
    - Application route groups are mounted under /api by api/router.py

Design Decisions:
    - Explicit registration in main.py over auto-discovery (ADR: ExMA anti-pattern)
"""
