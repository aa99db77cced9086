from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Type

from pydantic import BaseModel

from libs.app.errors import SecurityError
from libs.domain.dto.rpc import RpcResponse


class ISecurityRpcHandler(ABC):
    """
    Обработчик одного RPC-метода security-сервиса.
    Слушатель валидирует payload моделью request_model и зовёт handle().
    """

    request_model: ClassVar[Type[BaseModel]]

    async def handle(self, dto: Any) -> RpcResponse:
        """Ошибки домена превращаются в RpcResponse(success=False), остальные уходят в retry."""
        try:
            return await self.process(dto)
        except SecurityError as e:
            return RpcResponse.from_error(e)

    @abstractmethod
    async def process(self, dto: Any) -> RpcResponse:
        ...
