# libs/app/exception_handlers.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.app.errors import SecurityError, get_http_status
from libs.utils.logging_setup import app_logger as logger


async def security_error_handler(request: Request, exc: SecurityError) -> JSONResponse:
    status_code = get_http_status(exc.code)
    logger.info(
        f"HTTP {request.method} {request.url.path} -> {exc.code.value}: {exc.message}",
        extra={"err_code": exc.code.value, "status": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": exc.message,
            "data": {"code": exc.code.value, "details": exc.details},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Доменные ошибки отдаём в том же конверте APIResponse, что и успешные ответы."""
    app.add_exception_handler(SecurityError, security_error_handler)  # type: ignore[arg-type]


__all__ = ["register_exception_handlers", "security_error_handler"]
