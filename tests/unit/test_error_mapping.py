import pytest
from fastapi import status

from libs.app.errors import (
    ErrorCode,
    LockoutError,
    TooSoonError,
    ValidationError,
    get_http_status,
)


@pytest.mark.parametrize(
    "error_code, expected_status",
    [
        (ErrorCode.VALIDATION_FAILED, status.HTTP_400_BAD_REQUEST),
        (ErrorCode.AUTH_INVALID_CREDENTIALS, status.HTTP_401_UNAUTHORIZED),
        (ErrorCode.RECOVERY_VERIFICATION_FAILED, status.HTTP_401_UNAUTHORIZED),
        (ErrorCode.SECURITY_PASSWORD_REUSED, status.HTTP_409_CONFLICT),
        (ErrorCode.SECURITY_ACCOUNT_LOCKED, status.HTTP_423_LOCKED),
        (ErrorCode.SECURITY_PASSWORD_TOO_SOON, status.HTTP_429_TOO_MANY_REQUESTS),
        (ErrorCode.AUTH_RATE_LIMITED, status.HTTP_429_TOO_MANY_REQUESTS),
        (ErrorCode.PERSISTENCE_ERROR, status.HTTP_503_SERVICE_UNAVAILABLE),
        (ErrorCode.RPC_TIMEOUT, status.HTTP_503_SERVICE_UNAVAILABLE),
        (ErrorCode.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("security.account_locked", status.HTTP_423_LOCKED),  # строковый код тоже находится
        ("some.unknown.error", status.HTTP_500_INTERNAL_SERVER_ERROR),  # статус по умолчанию
    ],
)
def test_error_code_to_http_status_mapping(error_code: str, expected_status: int):
    assert get_http_status(error_code) == expected_status


def test_validation_error_lists_every_problem():
    exc = ValidationError(["too short", "no digit"])
    assert exc.code is ErrorCode.VALIDATION_FAILED
    assert exc.details == {"errors": ["too short", "no digit"]}
    assert "too short" in exc.message and "no digit" in exc.message


def test_lockout_error_details():
    exc = LockoutError("locked", remaining_minutes=15, lockout_count=2)
    assert exc.to_dict() == {
        "code": "security.account_locked",
        "message": "locked",
        "details": {"remaining_minutes": 15, "lockout_count": 2},
    }


def test_too_soon_error_reports_hours_remaining():
    exc = TooSoonError("wait", hours_remaining=3)
    assert isinstance(exc, LockoutError)
    assert exc.code is ErrorCode.SECURITY_PASSWORD_TOO_SOON
    assert exc.details == {"hours_remaining": 3}
