"""Error hierarchy — codes, HTTP statuses and the response envelope."""

from chargewatch.core.errors import (
    AuthenticationRequiredError, ErrorContext, NoChargerAvailable,
    ResourceNotFoundError, SessionConflict, SessionForbidden, SessionNotActive,
    StorageError,
)


def test_conflicts_are_409():
    for error in (SessionConflict(), NoChargerAvailable(), SessionNotActive()):
        assert error.http_status == 409


def test_status_codes():
    assert SessionForbidden().http_status == 403
    assert AuthenticationRequiredError().http_status == 401
    assert ResourceNotFoundError("Station", "x").http_status == 404
    assert StorageError("boom", "commit").http_status == 503


def test_response_envelope_carries_context():
    ctx = ErrorContext(station_id="s1", operation="start_session")
    body = SessionConflict(ctx).to_response()["error"]
    assert body["code"] == "SESSION_CONFLICT"
    assert body["category"] == "conflict"
    assert body["context"]["station_id"] == "s1"
    assert body["context"]["operation"] == "start_session"


def test_log_extra_skips_empty_fields():
    ctx = ErrorContext(user_id="u1", precondition="available_chargers > 0")
    assert ctx.log_extra() == {
        "user_id": "u1", "precondition": "available_chargers > 0",
    }
