# libs/containers/security_container.py

from __future__ import annotations
import asyncio
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from libs.messaging.i_message_bus import IMessageBus
from libs.messaging.rabbitmq_message_bus import RabbitMQMessageBus
from libs.infra.central_redis_client import CentralRedisClient
from libs.infra.db import create_engine, create_session_factory
from libs.domain.dto.base import Clock, utcnow
from apps.security_svc.cache.lockout_cache import LockoutCache
from apps.security_svc.cache.rpc_reply_cache import RpcReplyCache
from apps.security_svc.config.security_policy import SecurityPolicy
from apps.security_svc.config.settings_security import SecurityServiceSettings
from apps.security_svc.db.i_security_store import ISecurityStore
from apps.security_svc.db.security_repository import SqlSecurityStore
from apps.security_svc.providers.i_auth_provider import IAuthProvider
from apps.security_svc.providers.rpc_auth_provider import RpcAuthProvider
from apps.security_svc.services.admin_override import AdminOverrideService
from apps.security_svc.services.attempt_recorder import AttemptRecorder
from apps.security_svc.services.lockout_engine import LockoutEngine
from apps.security_svc.services.login_guard import LoginGuard
from apps.security_svc.services.password_lifecycle import PasswordLifecycleService
from apps.security_svc.services.recovery_verifier import RecoveryVerifier
from apps.security_svc.services.security_status import SecurityStatusService
from apps.security_svc.utils.password_manager import PasswordManager
from apps.security_svc.handlers.check_lock_rpc_handler import CheckLockRpcHandler
from apps.security_svc.handlers.login_failed_rpc_handler import LoginFailedRpcHandler
from apps.security_svc.handlers.login_succeeded_rpc_handler import LoginSucceededRpcHandler


@dataclass
class SecurityContainer:
    """DI-контейнер для security_svc."""

    policy: SecurityPolicy
    store: ISecurityStore
    auth_provider: IAuthProvider
    lockout_engine: LockoutEngine
    attempt_recorder: AttemptRecorder
    status_service: SecurityStatusService
    admin_override: AdminOverrideService
    password_lifecycle: PasswordLifecycleService
    recovery_verifier: RecoveryVerifier
    login_guard: LoginGuard
    check_lock_handler: CheckLockRpcHandler
    login_failed_handler: LoginFailedRpcHandler
    login_succeeded_handler: LoginSucceededRpcHandler
    bus: Optional[IMessageBus] = None
    redis: Optional[CentralRedisClient] = None
    engine: Optional[AsyncEngine] = None
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    rpc_max_retries: int = 3
    rpc_reply_cache: Optional[RpcReplyCache] = None

    @classmethod
    def build(
        cls,
        *,
        policy: SecurityPolicy,
        store: ISecurityStore,
        auth_provider: IAuthProvider,
        password_manager: PasswordManager,
        lock_cache: Optional[LockoutCache] = None,
        clock: Clock = utcnow,
        **infra,
    ) -> "SecurityContainer":
        """Собирает граф сервисов поверх готовых хранилища и провайдера (и в тестах тоже)."""
        lockout_engine = LockoutEngine(store, policy, cache=lock_cache, clock=clock)
        attempt_recorder = AttemptRecorder(store, lockout_engine, policy, clock=clock)
        status_service = SecurityStatusService(store, attempt_recorder, lockout_engine, policy, clock=clock)
        password_lifecycle = PasswordLifecycleService(
            store, auth_provider, password_manager, policy, clock=clock
        )
        recovery_verifier = RecoveryVerifier(
            store, auth_provider, password_manager, password_lifecycle, policy, clock=clock
        )
        login_guard = LoginGuard(attempt_recorder, lockout_engine, status_service)

        return cls(
            policy=policy,
            store=store,
            auth_provider=auth_provider,
            lockout_engine=lockout_engine,
            attempt_recorder=attempt_recorder,
            status_service=status_service,
            admin_override=AdminOverrideService(store, lockout_engine, clock=clock),
            password_lifecycle=password_lifecycle,
            recovery_verifier=recovery_verifier,
            login_guard=login_guard,
            check_lock_handler=CheckLockRpcHandler(login_guard),
            login_failed_handler=LoginFailedRpcHandler(login_guard),
            login_succeeded_handler=LoginSucceededRpcHandler(login_guard),
            **infra,
        )

    @classmethod
    async def create(cls, settings: SecurityServiceSettings) -> "SecurityContainer":
        """Фабричный метод для асинхронной инициализации контейнера."""
        bus = RabbitMQMessageBus(
            settings.RABBITMQ_DSN,
            rpc_timeout_ms=settings.RPC_TIMEOUT_MS,
            connect_timeout_sec=settings.RABBITMQ_CONNECT_TIMEOUT_SEC,
        )
        redis_client = CentralRedisClient(
            redis_url=settings.REDIS_URL, password=settings.REDIS_PASSWORD
        )
        await asyncio.gather(bus.connect(), redis_client.connect())

        engine = create_engine(settings.DATABASE_URL, schema=settings.DB_SCHEMA, echo=settings.DB_ECHO)
        session_factory = create_session_factory(engine)

        return cls.build(
            policy=settings.to_policy(),
            store=SqlSecurityStore(session_factory),
            auth_provider=RpcAuthProvider(bus),
            password_manager=PasswordManager(rounds=settings.SECURITY_PASSWORD_BCRYPT_ROUNDS),
            lock_cache=LockoutCache(redis_client) if settings.SECURITY_LOCK_CACHE_ENABLED else None,
            bus=bus,
            redis=redis_client,
            engine=engine,
            session_factory=session_factory,
            rpc_max_retries=settings.RPC_MAX_RETRIES,
            rpc_reply_cache=RpcReplyCache(redis_client, ttl_sec=settings.RPC_REPLY_CACHE_TTL_SEC),
        )

    async def shutdown(self):
        shutdown_tasks = []
        if self.bus:
            shutdown_tasks.append(self.bus.close())
        if self.redis:
            shutdown_tasks.append(self.redis.close())
        if self.engine:
            shutdown_tasks.append(self.engine.dispose())

        await asyncio.gather(*shutdown_tasks, return_exceptions=True)
