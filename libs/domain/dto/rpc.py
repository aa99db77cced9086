# libs/domain/dto/rpc.py
from __future__ import annotations
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

from libs.app.errors import SecurityError

PayloadT = TypeVar("PayloadT")


class RpcResponse(BaseModel, Generic[PayloadT]):
    """Стандартный конверт для ответа в RPC."""
    success: bool
    data: Optional[PayloadT] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None

    @classmethod
    def from_error(cls, exc: SecurityError) -> "RpcResponse[Any]":
        return cls(success=False, error_code=exc.code.value, message=exc.message, details=exc.details or None)
