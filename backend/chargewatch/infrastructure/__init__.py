"""Infrastructure Layer — database access and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All storage calls mapped to StorageError (core/errors.py) and retried with backoff

Design Decisions:
    - Resilient wrappers over raw sessions: isolates retry logic from services
"""
