"""writepath — write-path coordination: in-flight mutations, cache invalidation, audit trail.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
