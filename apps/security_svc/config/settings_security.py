# apps/security_svc/config/settings_security.py
from pydantic_settings import BaseSettings, SettingsConfigDict

from .security_policy import SecurityPolicy


class SecurityServiceSettings(BaseSettings):
    """
    Централизованные настройки сервиса безопасности аккаунтов.
    Pydantic читает их из .env файла или переменных окружения.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Пороговые значения политики
    SECURITY_MAX_FAILED_ATTEMPTS: int = 3
    SECURITY_BASE_LOCKOUT_MINUTES: int = 15
    SECURITY_MAX_LOCKOUT_MINUTES: int = 120
    SECURITY_ATTEMPT_WINDOW_MINUTES: int = 60
    SECURITY_PROGRESSIVE_MULTIPLIER: int = 2
    SECURITY_LOCKOUT_FAIL_OPEN: bool = True
    SECURITY_PASSWORD_HISTORY_SIZE: int = 5
    SECURITY_PASSWORD_CHANGE_HISTORY_SIZE: int = 10
    SECURITY_MIN_PASSWORD_CHANGE_INTERVAL_HOURS: int = 24
    SECURITY_MIN_SECURITY_QUESTIONS: int = 3
    SECURITY_MAX_SECURITY_QUESTIONS: int = 5
    SECURITY_MIN_ANSWER_LENGTH: int = 5
    SECURITY_RECOVERY_MIN_CORRECT_ANSWERS: int = 2
    SECURITY_LOGIN_HISTORY_WINDOW_HOURS: int = 24

    # Настройки хеширования
    SECURITY_PASSWORD_BCRYPT_ROUNDS: int = 12

    # Фоновые задачи и кэш
    SECURITY_LOCK_CACHE_ENABLED: bool = True
    SECURITY_CLEANUP_INTERVAL_SEC: int = 3600
    SECURITY_CLEANUP_MAX_AGE_HOURS: int = 24

    # Настройки подключения к зависимостям
    RABBITMQ_DSN: str
    RABBITMQ_CONNECT_TIMEOUT_SEC: float = 15.0
    RPC_TIMEOUT_MS: int = 5000
    RPC_MAX_RETRIES: int = 3
    RPC_REPLY_CACHE_TTL_SEC: int = 600
    REDIS_URL: str
    REDIS_PASSWORD: str | None = None
    DATABASE_URL: str
    DB_SCHEMA: str = "security"
    DB_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    def to_policy(self) -> SecurityPolicy:
        return SecurityPolicy(
            max_failed_attempts=self.SECURITY_MAX_FAILED_ATTEMPTS,
            base_lockout_minutes=self.SECURITY_BASE_LOCKOUT_MINUTES,
            max_lockout_minutes=self.SECURITY_MAX_LOCKOUT_MINUTES,
            attempt_window_minutes=self.SECURITY_ATTEMPT_WINDOW_MINUTES,
            progressive_multiplier=self.SECURITY_PROGRESSIVE_MULTIPLIER,
            lockout_fail_open=self.SECURITY_LOCKOUT_FAIL_OPEN,
            password_history_size=self.SECURITY_PASSWORD_HISTORY_SIZE,
            password_change_history_size=self.SECURITY_PASSWORD_CHANGE_HISTORY_SIZE,
            min_password_change_interval_hours=self.SECURITY_MIN_PASSWORD_CHANGE_INTERVAL_HOURS,
            min_security_questions=self.SECURITY_MIN_SECURITY_QUESTIONS,
            max_security_questions=self.SECURITY_MAX_SECURITY_QUESTIONS,
            min_answer_length=self.SECURITY_MIN_ANSWER_LENGTH,
            recovery_min_correct_answers=self.SECURITY_RECOVERY_MIN_CORRECT_ANSWERS,
            login_history_window_hours=self.SECURITY_LOGIN_HISTORY_WINDOW_HOURS,
        )
