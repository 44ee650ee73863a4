"""Services Layer — async orchestration of the write path over boundary protocols.

Invariants:
    - Services depend on protocols, never on concrete infrastructure classes
    - Registry operations stay synchronous; only cache and audit IO suspend

Design Decisions:
    - One service per coordination concern, composed by write_path_context.py
"""
