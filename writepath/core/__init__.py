"""Core Layer — pure coordination logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, schemas/ or db/
    - Registry bookkeeping and resolver lookups never suspend

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
