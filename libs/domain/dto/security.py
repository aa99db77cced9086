# libs/domain/dto/security.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import utcnow


def normalize_email(email: str) -> str:
    """Все ключи по email храним в нижнем регистре."""
    return email.strip().lower()


# ----- СУЩНОСТИ ХРАНИЛИЩА -----
class LoginAttempt(BaseModel):
    email: str
    timestamp: datetime
    attempt_number: int = Field(..., ge=1)


class AccountLockout(BaseModel):
    email: str
    locked_at: datetime
    unlock_at: datetime
    failed_attempts: int
    lockout_count: int = Field(..., ge=1)

    @property
    def duration_minutes(self) -> int:
        return int((self.unlock_at - self.locked_at).total_seconds() // 60)


class SecurityQuestion(BaseModel):
    question_id: str
    question: str
    hashed_answer: str
    created_at: datetime = Field(default_factory=utcnow)


class UserSecurityProfile(BaseModel):
    user_id: str
    security_questions: List[SecurityQuestion] = Field(default_factory=list)
    last_password_change: Optional[datetime] = None
    password_change_history: List[datetime] = Field(default_factory=list)
    password_hashes: List[str] = Field(default_factory=list)
    last_login_attempt: Optional[datetime] = None
    last_successful_login: Optional[datetime] = None
    account_recovery_enabled: bool = False


class LoginRecord(BaseModel):
    user_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    success: bool
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditEvent(BaseModel):
    actor: str
    action: str
    target: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


# ----- ЗАПРОСЫ -----
class AccountIdentity(BaseModel):
    """Кто меняет пароль: id пользователя и email для повторной аутентификации."""
    model_config = ConfigDict(extra="forbid")
    user_id: str
    email: str


class SecurityAnswer(BaseModel):
    model_config = ConfigDict(extra="forbid")
    question_id: str
    answer: str
    # Текст вопроса для собственных вопросов вне каталога
    question: Optional[str] = None


class EmailRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    email: str

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return normalize_email(v)


class AdminUnlockRequest(EmailRequest):
    admin_email: str


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    identity: AccountIdentity
    current_password: str
    new_password: str


class ValidatePasswordRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    password: str


class SetupQuestionsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    answers: List[SecurityAnswer]


class VerifyQuestionsRequest(EmailRequest):
    answers: List[SecurityAnswer]


class ResetPasswordRequest(EmailRequest):
    answers: List[SecurityAnswer]
    new_password: str


class RecordLoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    user_id: str
    success: bool
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class LoginEventRequest(EmailRequest):
    """Сообщение от auth-сервиса о результате входа."""
    user_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# ----- ОТВЕТЫ -----
class LockStatus(BaseModel):
    is_locked: bool
    unlock_at: Optional[datetime] = None
    remaining_minutes: Optional[int] = None
    lockout_count: Optional[int] = None


class AccountSecurityStatus(BaseModel):
    recent_failed_attempts: int = 0
    is_locked: bool = False
    lockout_info: Optional[AccountLockout] = None


class ChangeEligibility(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    hours_remaining: Optional[int] = None


class PasswordValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    strength: Literal["weak", "medium", "strong"] = "weak"


class QuestionView(BaseModel):
    question_id: str
    question: str


class LastLoginInfo(BaseModel):
    last_successful_login: Optional[datetime] = None
    recent_failed_attempts: int = 0


class UnlockResult(BaseModel):
    success: bool


class VerifyResult(BaseModel):
    verified: bool
