import json

import pytest

from libs.messaging.base_listener import BaseMicroserviceListener
from libs.messaging.rabbitmq_names import Exchanges, get_dlq_name
from tests.fakes import FakeMessageBus

QUEUE = "core.security.rpc.check_lock.v1"


class FakeIncomingMessage:
    def __init__(self, body: bytes, *, retries: int = 0, correlation_id: str = "c1"):
        self.body = body
        self.correlation_id = correlation_id
        self.headers = {"x-death": [{"count": retries}]} if retries else {}
        self.acked = False
        self.nacked = False

    def info(self):
        return {"reply_to": "amq.rabbitmq.reply-to", "correlation_id": self.correlation_id}

    async def ack(self):
        self.acked = True

    async def nack(self, requeue: bool = True):
        self.nacked = True


class RecordingListener(BaseMicroserviceListener):
    def __init__(self, bus, fail: bool = False):
        super().__init__(name="test", queue_name=QUEUE, message_bus=bus, max_retries=3)
        self.fail = fail
        self.seen = []

    async def process_message(self, data, meta):
        if self.fail:
            raise RuntimeError("boom")
        self.seen.append((data, meta))


@pytest.mark.anyio
async def test_processed_message_is_acked():
    bus = FakeMessageBus()
    listener = RecordingListener(bus)
    msg = FakeIncomingMessage(json.dumps({"email": "a@b.c"}).encode())

    await listener._on_message(msg)

    assert msg.acked is True
    assert listener.seen[0][0] == {"email": "a@b.c"}
    assert listener.seen[0][1]["correlation_id"] == "c1"


@pytest.mark.anyio
async def test_handler_failure_goes_to_retry():
    bus = FakeMessageBus()
    msg = FakeIncomingMessage(b'{"email": "a@b.c"}')

    await RecordingListener(bus, fail=True)._on_message(msg)

    assert msg.nacked is True
    assert msg.acked is False
    assert bus.published == []


@pytest.mark.anyio
async def test_exhausted_retries_go_to_dlq():
    bus = FakeMessageBus()
    listener = RecordingListener(bus)
    msg = FakeIncomingMessage(b'{"email": "a@b.c"}', retries=3)

    await listener._on_message(msg)

    assert msg.acked is True
    assert listener.seen == []
    assert bus.published == [
        {"exchange": Exchanges.DLX, "routing_key": get_dlq_name(QUEUE), "message": {"email": "a@b.c"}}
    ]


@pytest.mark.anyio
async def test_malformed_body_goes_to_dlq():
    bus = FakeMessageBus()
    msg = FakeIncomingMessage(b"not json")

    await RecordingListener(bus)._on_message(msg)

    assert msg.acked is True
    assert bus.published[0]["message"] == {"raw": "not json"}
