# libs/utils/logging_setup.py
import logging
import sys
from typing import Any
from logging import Logger

from .json_logging import JsonFormatter, SecretMaskingFilter

# --- Пользовательский уровень SUCCESS ---
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")


def success_log_method(self: Logger, message: str, *args: Any, **kwargs: Any):
    if self.isEnabledFor(SUCCESS_LEVEL_NUM):
        self._log(SUCCESS_LEVEL_NUM, message, args, **kwargs)


setattr(logging.Logger, "success", success_log_method)

# Логгеры сторонних библиотек, которые слишком шумят на INFO
NOISY_LOGGERS = (
    "sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm",
    "asyncpg", "aio_pika", "aiormq",
)
SERVER_LOGGERS = ("uvicorn.error", "uvicorn.access")


def get_json_console_handler(level: int, service_name: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    fmt = JsonFormatter()
    setattr(fmt, "_static_fields", {"svc": service_name})
    handler.setFormatter(fmt)
    handler.addFilter(SecretMaskingFilter())
    return handler


def configure_logging(service_name: str, level: str = "INFO", sql_echo: bool = False) -> Logger:
    """
    Настраивает JSON-логирование процесса: корневой логгер, uvicorn и шумные библиотеки.
    Повторный вызов заменяет обработчики, а не дублирует их.
    """
    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO

    root = logging.getLogger()
    root.setLevel(lvl)
    root.handlers = [get_json_console_handler(lvl, service_name)]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if sql_echo else logging.WARNING)

    for name in SERVER_LOGGERS:
        ext_logger = logging.getLogger(name)
        ext_logger.handlers = [get_json_console_handler(lvl, "uvicorn")]
        ext_logger.propagate = False

    return app_logger


# --- Логгер приложения ---
# До configure_logging пишет через корневой логгер с настройками по умолчанию
app_logger = logging.getLogger("security_svc")
