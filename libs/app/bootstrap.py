# libs/app/bootstrap.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Coroutine, Dict, List, Optional, Type

from fastapi import FastAPI
from pydantic_settings import BaseSettings

from .logging_middleware import LoggingMiddleware
from .security_middleware import SecurityHeadersMiddleware
from libs.app.exception_handlers import register_exception_handlers
from libs.app.health import ReadinessCheck, create_readiness_router
from libs.infra.db import check_db_connection
from libs.messaging.base_listener import BaseMicroserviceListener
from libs.messaging.i_message_bus import IMessageBus
from libs.utils.logging_setup import app_logger as log, configure_logging

ListenerFactory = Callable[[IMessageBus, Any], Awaitable[BaseMicroserviceListener]]
TopologyDeclarator = Callable[[IMessageBus], Awaitable[None]]
ContainerFactory = Callable[[BaseSettings], Awaitable[Any]]
BackgroundTask = Callable[[BaseSettings, Any], Coroutine[Any, Any, None]]


@asynccontextmanager
async def service_lifespan(
    app: FastAPI,
    *,
    container_factory: ContainerFactory,
    topology_declarator: TopologyDeclarator,
    listener_factories: List[ListenerFactory],
    background_tasks: List[BackgroundTask],
):
    """
    Старт: контейнер, топология RabbitMQ, слушатели, фоновые задачи.
    Остановка в обратном порядке.
    """
    settings = app.state.settings
    listeners: List[BaseMicroserviceListener] = []
    tasks: List[asyncio.Task] = []
    log.info("Запуск сервиса...")
    try:
        container = await container_factory(settings)
        app.state.container = container
        log.info("DI-контейнер инициализирован.")

        await topology_declarator(container.bus)
        log.info("Топология RabbitMQ объявлена.")

        listeners = list(await asyncio.gather(*(f(container.bus, container) for f in listener_factories)))
        for listener in listeners:
            await listener.start()
        log.info(f"Запущено слушателей: {len(listeners)}")

        tasks = [asyncio.create_task(task(settings, container)) for task in background_tasks]
        if tasks:
            log.info(f"Запущено фоновых задач: {len(tasks)}")

        log.success("Сервис готов к работе.")
        yield
    except Exception:
        log.exception("Критическая ошибка при старте сервиса.")
        raise
    finally:
        log.info("Остановка сервиса...")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        for listener in reversed(listeners):
            try:
                await listener.stop()
            except Exception:
                log.exception(f"Ошибка при остановке слушателя {listener.name}")

        container = getattr(app.state, "container", None)
        if container is not None:
            await container.shutdown()
        log.info("Сервис остановлен.")


def _readiness_checks(app: FastAPI) -> List[ReadinessCheck]:
    """Проверки зависимостей контейнера: RabbitMQ, PostgreSQL, Redis (если подключён)."""

    async def rabbitmq():
        return "rabbitmq", await app.state.container.bus.is_connected()

    async def postgres():
        engine = app.state.container.engine
        if engine is None:
            return None
        return "postgres", await check_db_connection(engine)

    async def redis():
        client = app.state.container.redis
        if client is None:
            return None
        return "redis", await client.ping()

    return [rabbitmq, postgres, redis]


def create_service_app(
    *,
    service_name: str,
    settings_class: Type[BaseSettings],
    container_factory: ContainerFactory,
    topology_declarator: TopologyDeclarator,
    listener_factories: Optional[List[ListenerFactory]] = None,
    include_rest_routers: Optional[List[Dict[str, Any]]] = None,
    background_tasks: Optional[List[BackgroundTask]] = None,
) -> FastAPI:
    """Фабрика FastAPI-приложения микросервиса."""
    settings = settings_class()
    configure_logging(service_name, getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "DB_ECHO", False))

    def _lifespan(app: FastAPI):
        return service_lifespan(
            app,
            container_factory=container_factory,
            topology_declarator=topology_declarator,
            listener_factories=listener_factories or [],
            background_tasks=background_tasks or [],
        )

    app = FastAPI(title=service_name, lifespan=_lifespan)
    app.state.settings = settings

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(create_readiness_router(_readiness_checks(app)))
    for router_config in include_rest_routers or []:
        app.include_router(
            router_config["router"],
            prefix=router_config.get("prefix", ""),
            tags=router_config.get("tags", []),
        )

    log.info(f"Приложение '{service_name}' сконфигурировано.")
    return app
