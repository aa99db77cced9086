# libs/app/logging_middleware.py
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable, Awaitable

from libs.utils.ids import new_request_id
from libs.utils.logging_setup import app_logger as logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Сквозное логирование HTTP-запросов.
    - Берёт X-Request-ID из запроса или генерирует новый.
    - Пишет одну JSON-запись на запрос: путь, метод, статус, задержка.
    Query string не логируется: там бывают email.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("x-request-id") or new_request_id()
        start_time = time.monotonic()

        response = await call_next(request)

        latency_ms = (time.monotonic() - start_time) * 1000
        log_extra = {
            "req_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "latency_ms": round(latency_ms, 2),
        }
        level = "warning" if response.status_code >= 500 else "info"
        getattr(logger, level)(
            f"HTTP {request.method} {request.url.path} - {response.status_code}",
            extra=log_extra,
        )

        response.headers["x-request-id"] = request_id
        return response
