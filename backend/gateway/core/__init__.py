"""Core Layer — pipeline decisions, error taxonomy and startup state, no network IO.

Invariants:
    - No module in core/ imports from api/, middleware/, or infrastructure/
    - Policy evaluation and state transitions are deterministic

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
"""
