# libs/messaging/base_listener.py
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import aio_pika

from libs.messaging.i_message_bus import IMessageBus
from libs.messaging.rabbitmq_names import Exchanges as Ex
from libs.messaging.rabbitmq_names import get_dlq_name

log = logging.getLogger(__name__)


def _retry_count(msg: aio_pika.abc.AbstractIncomingMessage) -> int:
    # x-death[0] описывает последний круг через retry-очередь
    deaths = (msg.headers or {}).get("x-death") or []
    if isinstance(deaths, list) and deaths:
        return int(deaths[0].get("count", 0))
    return 0


class BaseMicroserviceListener(ABC):
    """
    Слушатель одной очереди с JSON-телами.
    - успех обработчика: ack;
    - нечитаемое тело или исчерпанные повторы: копия в DLQ и ack;
    - любая другая ошибка: nack без requeue, DLX уводит сообщение в retry-очередь.
    """

    def __init__(
            self,
            *,
            name: str,
            queue_name: str,
            message_bus: IMessageBus,
            prefetch: int = 32,
            consumer_count: int = 1,
            max_retries: int = 3,
    ) -> None:
        self.name = name
        self.queue_name = queue_name
        self.bus = message_bus
        self.prefetch = int(prefetch)
        self.consumer_count = int(consumer_count)
        self.max_retries = int(max_retries)
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        log.info(
            "[%s] starting: queue=%s prefetch=%d consumers=%d",
            self.name,
            self.queue_name,
            self.prefetch,
            self.consumer_count,
        )
        for _ in range(self.consumer_count):
            await self.bus.consume(self.queue_name, self._on_message, prefetch=self.prefetch)
        self._started = True

    async def stop(self) -> None:
        # Consumer'ы отменяются закрытием канала в container.shutdown()
        if not self._started:
            return
        self._started = False
        log.info("[%s] stopped", self.name)

    async def _on_message(self, msg: aio_pika.abc.AbstractIncomingMessage) -> None:
        retries = _retry_count(msg)
        if retries >= self.max_retries:
            log.error("[%s] retries exhausted (%d), moving to DLQ. meta=%s", self.name, retries, msg.info())
            await self._move_to_dlq(msg)
            await msg.ack()
            return

        try:
            body = json.loads(msg.body)
        except ValueError:
            log.warning("[%s] malformed JSON body, moving to DLQ. meta=%s", self.name, msg.info())
            await self._move_to_dlq(msg)
            await msg.ack()
            return

        try:
            await self.process_message(body, dict(msg.info()))
        except Exception:
            log.exception("[%s] handler failed, sending to retry. meta=%s", self.name, msg.info())
            await msg.nack(requeue=False)
            return
        await msg.ack()

    async def _move_to_dlq(self, msg: aio_pika.abc.AbstractIncomingMessage) -> None:
        try:
            body: Any = json.loads(msg.body)
        except ValueError:
            body = {"raw": msg.body.decode("utf-8", errors="replace")}
        await self.bus.publish(
            Ex.DLX,
            get_dlq_name(self.queue_name),
            body if isinstance(body, dict) else {"body": body},
            correlation_id=msg.correlation_id,
        )

    @abstractmethod
    async def process_message(self, data: Dict[str, Any], meta: Dict[str, Any]) -> None:
        """data: распарсенное JSON-тело; meta: свойства AMQP (reply_to, correlation_id, ...)."""
        ...
