# libs/messaging/rabbitmq_message_bus.py
from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, Optional, cast
from urllib.parse import urlparse

import aio_pika
from aio_pika.abc import (
    AbstractIncomingMessage,
    AbstractRobustChannel,
    AbstractRobustConnection,
)
from aio_pika.exceptions import AMQPError

from .i_message_bus import IMessageBus, MessageHandler
from libs.utils.ids import new_correlation_id
from libs.utils.logging_setup import app_logger as logger

REPLY_TO_QUEUE = "amq.rabbitmq.reply-to"


def _dumps(o: Dict[str, Any]) -> bytes:
    return json.dumps(o, separators=(",", ":"), ensure_ascii=False, default=str).encode("utf-8")


def _describe_dsn(dsn: str) -> str:
    # Пароль в лог не попадает
    parsed = urlparse(dsn)
    return f"host={parsed.hostname}, vhost={parsed.path or '/'!r}, user={parsed.username!r}"


class RabbitMQMessageBus(IMessageBus):
    """
    JSON-шина на RabbitMQ (aio-pika).
    Публикация с publisher confirms, RPC через Direct Reply-to:
    ответы приходят в псевдо-очередь amq.rabbitmq.reply-to и сопоставляются по correlation_id.
    """

    def __init__(
        self,
        dsn: str,
        *,
        rpc_timeout_ms: int = 5000,
        connect_timeout_sec: float = 15.0,
        reconnect_backoff: float = 1.0,
    ) -> None:
        self._dsn = dsn
        self._rpc_timeout = rpc_timeout_ms / 1000.0
        self._connect_timeout = connect_timeout_sec
        self._backoff = reconnect_backoff
        self._conn: Optional[AbstractRobustConnection] = None
        self._chan: Optional[AbstractRobustChannel] = None
        self._rpc_futures: Dict[str, asyncio.Future] = {}
        self._reply_consumer_tag: Optional[str] = None

    # --- Соединение ---

    async def connect(self) -> None:
        """Подключение с повторами до connect_timeout_sec; после таймаута ошибка пробрасывается."""
        deadline = time.monotonic() + self._connect_timeout if self._connect_timeout > 0 else None
        target = _describe_dsn(self._dsn)
        attempt = 0

        while True:
            attempt += 1
            try:
                logger.info("bus: connecting to RabbitMQ (%s), attempt %s", target, attempt)
                self._conn = await aio_pika.connect_robust(self._dsn)
                self._chan = cast(
                    AbstractRobustChannel,
                    await self._conn.channel(publisher_confirms=True),
                )
                await self._start_reply_consumer()
                logger.success("bus: connected to RabbitMQ")
                return
            except (AMQPError, OSError) as e:
                if deadline is not None and time.monotonic() >= deadline:
                    logger.error("bus: connect timeout after %s attempts: %s", attempt, e)
                    raise
                await asyncio.sleep(self._backoff)

    async def is_connected(self) -> bool:
        return (
            self._conn is not None
            and not self._conn.is_closed
            and self._chan is not None
            and not self._chan.is_closed
        )

    async def close(self) -> None:
        try:
            if self._chan and not self._chan.is_closed:
                await self._chan.close()
        finally:
            if self._conn and not self._conn.is_closed:
                await self._conn.close()
            self._reply_consumer_tag = None
            for future in self._rpc_futures.values():
                future.cancel()
            self._rpc_futures.clear()

    async def _ensure(self) -> AbstractRobustChannel:
        if self._chan is None or self._chan.is_closed:
            await self.connect()
        assert self._chan is not None
        return self._chan

    # --- Топология ---

    async def declare_exchange(self, name: str, type_: str = "direct", durable: bool = True) -> None:
        ch = await self._ensure()
        await ch.declare_exchange(name, aio_pika.ExchangeType(type_), durable=durable)

    async def declare_queue(
        self,
        name: str,
        *,
        durable: bool = True,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> None:
        ch = await self._ensure()
        await ch.declare_queue(name, durable=durable, arguments=arguments or None)

    async def bind_queue(self, queue_name: str, exchange_name: str, routing_key: str) -> None:
        ch = await self._ensure()
        queue = await ch.get_queue(queue_name, ensure=True)
        exchange = await ch.get_exchange(exchange_name, ensure=True)
        await queue.bind(exchange, routing_key)

    # --- Публикация и подписка ---

    async def publish(
        self,
        exchange_name: str,
        routing_key: str,
        message: Dict[str, Any],
        *,
        correlation_id: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> None:
        ch = await self._ensure()
        exchange = await ch.get_exchange(exchange_name, ensure=True)
        await exchange.publish(
            aio_pika.Message(
                body=_dumps(message),
                content_type="application/json",
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                correlation_id=correlation_id,
                headers=headers or {},
            ),
            routing_key=routing_key,
        )

    async def consume(self, queue_name: str, handler: MessageHandler, *, prefetch: int = 1) -> None:
        ch = await self._ensure()
        await ch.set_qos(prefetch_count=int(prefetch))
        queue = await ch.get_queue(queue_name, ensure=True)
        await queue.consume(handler, no_ack=False)

    # --- RPC ---

    async def _start_reply_consumer(self) -> None:
        if self._reply_consumer_tag or not self._chan:
            return
        queue = await self._chan.get_queue(REPLY_TO_QUEUE, ensure=True)
        self._reply_consumer_tag = await queue.consume(self._on_rpc_reply, no_ack=True)

    async def _on_rpc_reply(self, message: AbstractIncomingMessage) -> None:
        future = self._rpc_futures.get(message.correlation_id or "")
        if future is None:
            logger.warning("bus: RPC reply for unknown correlation_id=%s", message.correlation_id)
            return
        if future.done():
            return
        try:
            future.set_result(json.loads(message.body))
        except ValueError as e:
            future.set_exception(e)

    async def publish_rpc_response(
        self, reply_to: str, response: Dict[str, Any], *, correlation_id: Optional[str]
    ) -> None:
        ch = await self._ensure()
        await ch.default_exchange.publish(
            aio_pika.Message(
                body=_dumps(response),
                content_type="application/json",
                delivery_mode=aio_pika.DeliveryMode.NOT_PERSISTENT,
                correlation_id=correlation_id,
            ),
            routing_key=reply_to,
        )

    async def call_rpc(
        self,
        exchange_name: str,
        routing_key: str,
        payload: Dict[str, Any],
        *,
        correlation_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """None означает отсутствие ответа: таймаут, неразборчивый ответ или недоставленное сообщение."""
        ch = await self._ensure()
        corr_id = correlation_id or new_correlation_id()
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._rpc_futures[corr_id] = future

        try:
            exchange = await ch.get_exchange(exchange_name, ensure=True)
            await exchange.publish(
                aio_pika.Message(
                    body=_dumps(payload),
                    content_type="application/json",
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                    correlation_id=corr_id,
                    reply_to=REPLY_TO_QUEUE,
                ),
                routing_key=routing_key,
                mandatory=True,
            )
            return await asyncio.wait_for(future, timeout=self._rpc_timeout)
        except asyncio.TimeoutError:
            logger.warning("bus: RPC %s timed out (correlation_id=%s)", routing_key, corr_id)
            return None
        except (AMQPError, ValueError):
            logger.error(
                "bus: RPC %s -> %s failed (correlation_id=%s)",
                exchange_name,
                routing_key,
                corr_id,
                exc_info=True,
            )
            return None
        finally:
            self._rpc_futures.pop(corr_id, None)
