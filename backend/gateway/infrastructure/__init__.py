"""Infrastructure Layer — database probe, metrics registry, logging, server and fault escalation.

Invariants:
    - Infrastructure may import core/ types (errors, startup state), never api/ or middleware/
    - Every external failure is mapped to a core error or reported through logging

Design Decisions:
    - Thin wrappers over SQLAlchemy, prometheus_client and uvicorn (ADR: ExMA single responsibility)
"""
