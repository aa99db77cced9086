# libs/utils/json_logging.py
import json
import logging
import re

# --- ФИЛЬТР ДЛЯ МАСКИРОВАНИЯ СЕКРЕТОВ ---

# Пароли, ответы на контрольные вопросы и их хэши никогда не попадают в лог
MASKED_KEYS = [
    "password", "current_password", "new_password", "password_hashes",
    "answer", "hashed_answer", "token", "authorization",
]
MASKED_PATTERN = re.compile(
    r"(\"?)(" + "|".join(MASKED_KEYS) + r")(\"?\s*[:=]\s*[\"'])(.*?)([\"'])", re.IGNORECASE
)


class SecretMaskingFilter(logging.Filter):
    """Маскирует чувствительные значения в тексте записи и её аргументах."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask_secrets(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: self.mask_secrets(v) if isinstance(v, str) else v for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self.mask_secrets(v) if isinstance(v, str) else v for v in record.args)
        return True

    def mask_secrets(self, message: str) -> str:
        return MASKED_PATTERN.sub(r'\1\2\3***MASKED***\5', message)


# --- JSON ФОРМАТТЕР ---

# Поля, которые можно передать через extra={...}
EXTRA_FIELDS = (
    "req_id", "corr_id", "email", "user_id", "path", "method",
    "status", "latency_ms", "err_code", "lockout_count",
)


class JsonFormatter(logging.Formatter):
    """Одна запись лога = одна JSON-строка."""

    def format(self, record: logging.LogRecord) -> str:
        static = getattr(self, "_static_fields", {})
        log_record = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "svc": getattr(record, "svc", static.get("svc", "unknown")),
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record['exc_info'] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
