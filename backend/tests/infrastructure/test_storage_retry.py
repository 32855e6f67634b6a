"""Storage retry — transient failures retried, business outcomes passed through."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from chargewatch.core.errors import ErrorContext, SessionConflict, StorageError
from chargewatch.infrastructure.database import backoff_ms, run_with_storage_retry


class FakeSession:
    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


def locked():
    return OperationalError("UPDATE stations", {}, Exception("database is locked"))


async def test_transient_failure_retried_then_succeeds():
    db = FakeSession()
    calls = {"n": 0}

    async def operation():
        calls["n"] += 1
        if calls["n"] < 3:
            raise locked()
        return "ok"

    result = await run_with_storage_retry(
        db, operation, max_retries=3, base_delay_ms=0,
    )
    assert result == "ok"
    assert calls["n"] == 3
    assert db.rollbacks == 2


async def test_exhausted_retries_raise_storage_error():
    db = FakeSession()

    async def operation():
        raise locked()

    with pytest.raises(StorageError) as exc:
        await run_with_storage_retry(
            db, operation, max_retries=2, base_delay_ms=0,
            context=ErrorContext(operation="start_session"),
        )
    assert exc.value.http_status == 503
    assert db.rollbacks == 3


async def test_integrity_error_not_retried():
    db = FakeSession()
    calls = {"n": 0}

    async def operation():
        calls["n"] += 1
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        await run_with_storage_retry(db, operation, base_delay_ms=0)
    assert calls["n"] == 1


async def test_domain_errors_pass_through():
    db = FakeSession()

    async def operation():
        raise SessionConflict()

    with pytest.raises(SessionConflict):
        await run_with_storage_retry(db, operation, base_delay_ms=0)
    assert db.rollbacks == 0


def test_backoff_grows_and_is_capped():
    assert 37 <= backoff_ms(0, 50, 2000) <= 62
    assert 150 <= backoff_ms(2, 50, 2000) <= 250
    assert backoff_ms(10, 50, 2000) <= 2500
