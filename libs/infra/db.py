# libs/infra/db.py
from __future__ import annotations

import logging
from sqlalchemy import text, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

log = logging.getLogger(__name__)


# --- ENGINE ---
def create_engine(database_url: str, *, schema: str = "security", echo: bool = False) -> AsyncEngine:
    """Движок asyncpg с search_path на схему сервиса."""
    # asyncpg понимает server_settings → задаём search_path сразу.
    connect_args = {"server_settings": {"search_path": f"{schema},public"}}

    engine = create_async_engine(
        database_url,
        echo=echo,
        poolclass=NullPool,  # при необходимости поменяйте на пул
        pool_pre_ping=True,
        connect_args=connect_args,
    )

    # Страховка для драйверов без server_settings
    @event.listens_for(engine.sync_engine, "connect")
    def _set_search_path(dbapi_conn, _):  # type: ignore[no-untyped-def]
        try:
            cur = dbapi_conn.cursor()
            cur.execute(f'SET search_path TO "{schema}", public')
            cur.close()
        except Exception:  # не мешаем подключению, просто логируем
            log.debug("Could not set search_path on connect", exc_info=True)

    return engine


# --- SESSION FACTORY ---
def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def check_db_connection(engine: AsyncEngine) -> bool:
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        log.exception("DB readiness check failed")
        return False


__all__ = [
    "create_engine",
    "create_session_factory",
    "check_db_connection",
]
