"""Error Hierarchy - status codes and response envelope."""

from lostfound.core.errors import (
    AlreadyReturnedError, ClaimNotExpiredError, ConcurrencyError, DatabaseError,
    ErrorCategory, ErrorContext, ForbiddenError, InvalidClaimError,
    InvalidIdentifierError, LostFoundError, ObjectValidationError,
    ResourceNotFoundError,
)


def test_all_errors_share_base():
    errors = [
        InvalidClaimError("x"), AlreadyReturnedError("x"), ClaimNotExpiredError("x"),
        InvalidIdentifierError("x"), ObjectValidationError("bad"),
        ForbiddenError("register_object", "applicant"),
        ResourceNotFoundError("Object", "x"), ConcurrencyError("conflict"),
        DatabaseError("down", "execute"),
    ]
    assert all(isinstance(e, LostFoundError) for e in errors)


def test_http_status_mapping():
    assert InvalidClaimError("x").http_status == 400
    assert AlreadyReturnedError("x").http_status == 400
    assert ClaimNotExpiredError("x").http_status == 400
    assert InvalidIdentifierError("x").http_status == 400
    assert ForbiddenError("c", "r").http_status == 403
    assert ResourceNotFoundError("Object", "x").http_status == 404
    assert ConcurrencyError("c").http_status == 409
    assert DatabaseError("down", "execute").http_status == 503


def test_codes():
    assert InvalidClaimError("x").code == "INVALID_CLAIM"
    assert AlreadyReturnedError("x").code == "ALREADY_RETURNED"
    assert ClaimNotExpiredError("x").code == "CLAIM_NOT_EXPIRED"
    assert ConcurrencyError("c").code == "CONCURRENCY_CONFLICT"
    assert ConcurrencyError("c").category == ErrorCategory.CONFLICT


def test_to_response_envelope():
    ctx = ErrorContext(object_id="abc", user_id="app-1")
    body = InvalidClaimError("abc", ctx).to_response()
    error = body["error"]
    assert error["code"] == "INVALID_CLAIM"
    assert error["category"] == "business_rule"
    assert error["severity"] == "error"
    assert error["context"] == {
        "object_id": "abc", "devolution_code": None, "user_id": "app-1",
    }
    assert "timestamp" in error


def test_claim_not_expired_keeps_expiry_date():
    assert ClaimNotExpiredError("x", "2024-05-13").expires_on == "2024-05-13"
