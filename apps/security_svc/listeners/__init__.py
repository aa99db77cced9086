# apps/security_svc/listeners/__init__.py
from __future__ import annotations
from typing import Callable, Awaitable

from libs.messaging.i_message_bus import IMessageBus
from libs.containers.security_container import SecurityContainer
from libs.messaging.base_listener import BaseMicroserviceListener
from libs.messaging.rabbitmq_names import Queues

from .security_rpc_listener import SecurityRpcListener

ListenerFactory = Callable[
    [IMessageBus, SecurityContainer], Awaitable[BaseMicroserviceListener]
]


def create_check_lock_listener_factory() -> ListenerFactory:
    async def factory(bus: IMessageBus, container: SecurityContainer) -> BaseMicroserviceListener:
        return SecurityRpcListener(
            name="security.check_lock.rpc",
            queue_name=Queues.SECURITY_CHECK_LOCK_RPC,
            message_bus=bus,
            handler=container.check_lock_handler,
            max_retries=container.rpc_max_retries,
            reply_cache=container.rpc_reply_cache,
        )

    return factory


def create_login_failed_listener_factory() -> ListenerFactory:
    async def factory(bus: IMessageBus, container: SecurityContainer) -> BaseMicroserviceListener:
        return SecurityRpcListener(
            name="security.login_failed.rpc",
            queue_name=Queues.SECURITY_LOGIN_FAILED_RPC,
            message_bus=bus,
            handler=container.login_failed_handler,
            max_retries=container.rpc_max_retries,
            reply_cache=container.rpc_reply_cache,
        )

    return factory


def create_login_succeeded_listener_factory() -> ListenerFactory:
    async def factory(bus: IMessageBus, container: SecurityContainer) -> BaseMicroserviceListener:
        return SecurityRpcListener(
            name="security.login_succeeded.rpc",
            queue_name=Queues.SECURITY_LOGIN_SUCCEEDED_RPC,
            message_bus=bus,
            handler=container.login_succeeded_handler,
            max_retries=container.rpc_max_retries,
            reply_cache=container.rpc_reply_cache,
        )

    return factory
