# libs/messaging/i_message_bus.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

import aio_pika

MessageHandler = Callable[[aio_pika.abc.AbstractIncomingMessage], Awaitable[None]]


class IMessageBus(ABC):
    """Шина сообщений с JSON-телами: топология, публикация, подписка и RPC."""

    @abstractmethod
    async def is_connected(self) -> bool: ...

    @abstractmethod
    async def connect(self) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...

    @abstractmethod
    async def declare_exchange(self, name: str, type_: str = "direct", durable: bool = True) -> None: ...

    @abstractmethod
    async def declare_queue(
        self,
        name: str,
        *,
        durable: bool = True,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    @abstractmethod
    async def bind_queue(self, queue_name: str, exchange_name: str, routing_key: str) -> None: ...

    @abstractmethod
    async def publish(
        self,
        exchange_name: str,
        routing_key: str,
        message: Dict[str, Any],
        *,
        correlation_id: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    @abstractmethod
    async def consume(self, queue_name: str, handler: MessageHandler, *, prefetch: int = 1) -> None:
        """Handler получает сообщение aio_pika целиком и сам решает про ack/nack."""
        ...

    @abstractmethod
    async def publish_rpc_response(
        self, reply_to: str, response: Dict[str, Any], *, correlation_id: Optional[str]
    ) -> None: ...

    @abstractmethod
    async def call_rpc(
        self,
        exchange_name: str,
        routing_key: str,
        payload: Dict[str, Any],
        *,
        correlation_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Отправить запрос и дождаться ответа. None, если ответа нет."""
        ...
