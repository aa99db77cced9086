# apps/security_svc/utils/password_policy.py
import re
from typing import List

from libs.domain.dto.security import PasswordValidationResult

MIN_LENGTH_EXCLUSIVE = 9
SYMBOLS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SYMBOL = re.compile("[" + re.escape(SYMBOLS) + "]")


def validate_password(password: str) -> PasswordValidationResult:
    """Проверяет пароль по всем правилам сразу и перечисляет каждое нарушенное."""
    errors: List[str] = []

    if len(password) <= MIN_LENGTH_EXCLUSIVE:
        errors.append(f"Password must be more than {MIN_LENGTH_EXCLUSIVE} characters")
    if not _UPPER.search(password):
        errors.append("Password must contain at least one uppercase letter")
    if not _LOWER.search(password):
        errors.append("Password must contain at least one lowercase letter")
    if not _DIGIT.search(password):
        errors.append("Password must contain at least one number")
    if not _SYMBOL.search(password):
        errors.append("Password must contain at least one special character (!@#$%^&*)")

    if not errors:
        strength = "strong"
    elif len(errors) <= 2:
        strength = "medium"
    else:
        strength = "weak"

    return PasswordValidationResult(is_valid=not errors, errors=errors, strength=strength)
