"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (`now` is always a parameter)

Design Decisions:
    - Functional core separated from imperative shell: the trust engine is safe
      to recompute on every read and from many readers at once
"""
