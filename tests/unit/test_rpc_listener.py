import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from apps.security_svc.cache.rpc_reply_cache import RpcReplyCache
from apps.security_svc.listeners import (
    create_check_lock_listener_factory,
    create_login_failed_listener_factory,
    create_login_succeeded_listener_factory,
)
from libs.messaging.rabbitmq_names import Queues
from tests.fakes import FakeMessageBus, FakeRedisClient

EMAIL = "user@example.com"
REPLY_TO = "amq.rabbitmq.reply-to"


@pytest.fixture
def bus() -> FakeMessageBus:
    return FakeMessageBus()


async def send(listener, bus, data, corr_id="corr-1"):
    await listener.process_message(data, {"reply_to": REPLY_TO, "correlation_id": corr_id})
    return bus.rpc_replies[-1]


@pytest.mark.anyio
async def test_check_lock_replies_with_status(bus, container):
    listener = await create_check_lock_listener_factory()(bus, container)
    assert listener.queue_name == Queues.SECURITY_CHECK_LOCK_RPC

    reply = await send(listener, bus, {"email": "User@Example.com"})

    assert reply["reply_to"] == REPLY_TO
    assert reply["correlation_id"] == "corr-1"
    assert reply["response"]["success"] is True
    assert reply["response"]["data"]["is_locked"] is False
    assert reply["response"]["correlation_id"] == "corr-1"


@pytest.mark.anyio
async def test_login_failed_reports_lockout(bus, container):
    listener = await create_login_failed_listener_factory()(bus, container)

    for i in range(2):
        reply = await send(listener, bus, {"payload": {"email": EMAIL}}, corr_id=f"c{i}")
        assert reply["response"]["success"] is True

    reply = await send(listener, bus, {"payload": {"email": EMAIL, "ip_address": "10.0.0.1"}})
    response = reply["response"]
    assert response["success"] is False
    assert response["error_code"] == "security.account_locked"
    assert response["details"] == {"remaining_minutes": 15, "lockout_count": 1}

    check = await create_check_lock_listener_factory()(bus, container)
    reply = await send(check, bus, {"email": EMAIL})
    assert reply["response"]["error_code"] == "security.account_locked"


@pytest.mark.anyio
async def test_login_succeeded_requires_user_id(bus, container):
    listener = await create_login_succeeded_listener_factory()(bus, container)

    reply = await send(listener, bus, {"email": EMAIL})
    assert reply["response"]["success"] is False
    assert reply["response"]["error_code"] == "validation.failed"

    reply = await send(listener, bus, {"email": EMAIL, "user_id": "u1"})
    assert reply["response"]["success"] is True


@pytest.mark.anyio
async def test_invalid_payload_gets_validation_reply(bus, container):
    listener = await create_check_lock_listener_factory()(bus, container)

    reply = await send(listener, bus, {"mail": EMAIL})
    assert reply["response"]["success"] is False
    assert reply["response"]["error_code"] == "validation.failed"
    assert reply["response"]["details"]["errors"]


@pytest.mark.anyio
async def test_no_reply_without_reply_to(bus, container):
    listener = await create_check_lock_listener_factory()(bus, container)
    await listener.process_message({"email": EMAIL}, {"correlation_id": "x"})
    assert bus.rpc_replies == []


# --- Повторная доставка ---

@pytest.mark.anyio
async def test_redelivered_login_failed_is_not_counted_twice(bus, container, store, monkeypatch):
    container.rpc_reply_cache = RpcReplyCache(FakeRedisClient())
    listener = await create_login_failed_listener_factory()(bus, container)

    async def reply_lost(**kwargs):
        raise ConnectionError("reply channel closed")

    # Первая обработка: попытка записана, но ответ не ушёл и сообщение вернётся через retry
    monkeypatch.setattr(bus, "publish_rpc_response", reply_lost)
    with pytest.raises(ConnectionError):
        await send(listener, bus, {"email": EMAIL}, corr_id="corr-9")
    monkeypatch.undo()

    reply = await send(listener, bus, {"email": EMAIL}, corr_id="corr-9")

    assert len(store.attempts) == 1
    assert reply["correlation_id"] == "corr-9"
    assert reply["response"]["success"] is True
    assert reply["response"]["data"]["is_locked"] is False


@pytest.mark.anyio
async def test_reply_cache_unavailable_falls_back_to_processing(bus, container, store):
    redis = FakeRedisClient()
    redis.error = RedisConnectionError("redis down")
    container.rpc_reply_cache = RpcReplyCache(redis)
    listener = await create_login_failed_listener_factory()(bus, container)

    reply = await send(listener, bus, {"email": EMAIL}, corr_id="corr-10")

    assert reply["response"]["success"] is True
    assert len(store.attempts) == 1
