# libs/app/errors.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import status


class ErrorCode(str, Enum):
    # Auth
    AUTH_INVALID_CREDENTIALS = "auth.invalid_credentials"
    AUTH_FORBIDDEN = "auth.forbidden"
    AUTH_RATE_LIMITED = "auth.rate_limited"

    # Security
    SECURITY_ACCOUNT_LOCKED = "security.account_locked"
    SECURITY_PASSWORD_TOO_SOON = "security.password_change_too_soon"
    SECURITY_PASSWORD_REUSED = "security.password_reused"
    RECOVERY_VERIFICATION_FAILED = "recovery.verification_failed"

    # RPC
    RPC_TIMEOUT = "rpc.timeout"
    RPC_BAD_RESPONSE = "rpc.bad_response"

    # Validation
    VALIDATION_FAILED = "validation.failed"

    # Common
    PERSISTENCE_ERROR = "common.persistence_error"
    INTERNAL_ERROR = "common.internal_error"


# Карта для преобразования кодов ошибок в HTTP статусы
ERROR_CODE_TO_HTTP_STATUS = {
    ErrorCode.AUTH_INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.AUTH_RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.RECOVERY_VERIFICATION_FAILED: status.HTTP_401_UNAUTHORIZED,

    ErrorCode.SECURITY_ACCOUNT_LOCKED: status.HTTP_423_LOCKED,
    ErrorCode.SECURITY_PASSWORD_TOO_SOON: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.SECURITY_PASSWORD_REUSED: status.HTTP_409_CONFLICT,

    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RPC_TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.RPC_BAD_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PERSISTENCE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status(error_code: str) -> int:
    """Возвращает HTTP статус для кода ошибки, по умолчанию 500."""
    return ERROR_CODE_TO_HTTP_STATUS.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


# --- ИСКЛЮЧЕНИЯ ПОДСИСТЕМЫ БЕЗОПАСНОСТИ ---


class SecurityError(Exception):
    """Базовое исключение: код ошибки, сообщение для клиента и детали."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class ValidationError(SecurityError):
    """Нарушение политики: пароль, ответы на вопросы, набор вопросов."""

    code = ErrorCode.VALIDATION_FAILED

    def __init__(self, errors: List[str], message: Optional[str] = None) -> None:
        self.errors = list(errors)
        super().__init__(
            message or "Validation failed: " + ", ".join(self.errors),
            details={"errors": self.errors},
        )


class AuthError(SecurityError):
    code = ErrorCode.AUTH_INVALID_CREDENTIALS


class LockoutError(SecurityError):
    """Аккаунт заблокирован; в деталях оставшееся время и номер блокировки."""

    code = ErrorCode.SECURITY_ACCOUNT_LOCKED

    def __init__(
        self,
        message: str,
        *,
        remaining_minutes: Optional[int] = None,
        lockout_count: Optional[int] = None,
    ) -> None:
        self.remaining_minutes = remaining_minutes
        self.lockout_count = lockout_count
        super().__init__(
            message,
            details={"remaining_minutes": remaining_minutes, "lockout_count": lockout_count},
        )


class TooSoonError(LockoutError):
    """Смена пароля раньше минимального интервала."""

    code = ErrorCode.SECURITY_PASSWORD_TOO_SOON

    def __init__(self, message: str, *, hours_remaining: int) -> None:
        super().__init__(message)
        self.hours_remaining = hours_remaining
        self.details = {"hours_remaining": hours_remaining}


class ReuseError(SecurityError):
    code = ErrorCode.SECURITY_PASSWORD_REUSED


class RateError(SecurityError):
    code = ErrorCode.AUTH_RATE_LIMITED


class PersistenceError(SecurityError):
    code = ErrorCode.PERSISTENCE_ERROR


class ProviderUnavailableError(SecurityError):
    code = ErrorCode.RPC_TIMEOUT
