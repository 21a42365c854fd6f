"""Gateway Package — request-entry layer: middleware pipeline, startup and failure funneling.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
