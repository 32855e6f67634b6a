"""Service Layer — imperative shell around the pure core.

Invariants:
    - Each public operation is one transactional unit (reads, conditional writes, commit)
    - Services raise ChargeWatchError subclasses, never HTTPException
    - Clock access goes through services.clock so tests can pin time

Design Decisions:
    - Thin routes delegate here; business rules live in core/
"""
