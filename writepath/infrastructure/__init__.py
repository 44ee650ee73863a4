"""Infrastructure Layer — IO adapters behind the core's boundary protocols.

Invariants:
    - Adapters implement core/repository_protocols.py structurally (no inheritance)
    - Backend failures are mapped to typed WritePathError subclasses

Design Decisions:
    - One adapter per collaborator: SQL record store, in-memory cache, database, logging
"""
