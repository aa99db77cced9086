# apps/security_svc/config/security_policy.py
from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SecurityPolicy(BaseModel):
    """
    Единый источник порогов безопасности.
    Неизменяемый объект внедряется в конструктор каждого компонента,
    тесты подменяют пороги через model_copy(update=...).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # --- Блокировка после неудачных входов ---
    max_failed_attempts: int = Field(3, ge=1)
    base_lockout_minutes: int = Field(15, ge=1)
    max_lockout_minutes: int = Field(120, ge=1)
    attempt_window_minutes: int = Field(60, ge=1)
    progressive_multiplier: int = Field(2, ge=1)
    # True: ошибка чтения хранилища => считаем аккаунт разблокированным
    lockout_fail_open: bool = True

    # --- Жизненный цикл пароля ---
    password_history_size: int = Field(5, ge=1)
    password_change_history_size: int = Field(10, ge=1)
    min_password_change_interval_hours: int = Field(24, ge=0)

    # --- Восстановление по контрольным вопросам ---
    min_security_questions: int = Field(3, ge=1)
    max_security_questions: int = Field(5, ge=1)
    min_answer_length: int = Field(5, ge=1)
    recovery_min_correct_answers: int = Field(2, ge=1)

    # --- Журнал входов ---
    login_history_window_hours: int = Field(24, ge=1)

    @model_validator(mode="after")
    def _check_ranges(self) -> "SecurityPolicy":
        if self.max_lockout_minutes < self.base_lockout_minutes:
            raise ValueError("max_lockout_minutes must be >= base_lockout_minutes")
        if self.max_security_questions < self.min_security_questions:
            raise ValueError("max_security_questions must be >= min_security_questions")
        if self.recovery_min_correct_answers > self.max_security_questions:
            raise ValueError("recovery_min_correct_answers must be <= max_security_questions")
        return self

    def lockout_duration(self, previous_lockout_count: int) -> timedelta:
        """min(BASE * MULTIPLIER^previous, MAX) минут."""
        minutes = min(
            self.base_lockout_minutes * self.progressive_multiplier ** max(previous_lockout_count, 0),
            self.max_lockout_minutes,
        )
        return timedelta(minutes=minutes)

    @property
    def attempt_window(self) -> timedelta:
        return timedelta(minutes=self.attempt_window_minutes)


DEFAULT_POLICY = SecurityPolicy()
