# apps/security_svc/tasks/cleanup_task.py
from __future__ import annotations

import asyncio
import logging

from libs.app.errors import PersistenceError
from libs.containers.security_container import SecurityContainer
from apps.security_svc.config.settings_security import SecurityServiceSettings

log = logging.getLogger(__name__)


async def run_cleanup_once(container: SecurityContainer, max_age_hours: int) -> int:
    try:
        return await container.attempt_recorder.cleanup_old_records(max_age_hours=max_age_hours)
    except PersistenceError as e:
        log.error(f"Очистка старых записей не удалась: {e}")
        return 0


async def periodic_cleanup(settings: SecurityServiceSettings, container: SecurityContainer) -> None:
    """Фоновая задача: раз в SECURITY_CLEANUP_INTERVAL_SEC чистит старые попытки и истёкшие блокировки."""
    interval = settings.SECURITY_CLEANUP_INTERVAL_SEC
    log.info(f"Фоновая очистка запущена, интервал {interval} сек")
    while True:
        await run_cleanup_once(container, settings.SECURITY_CLEANUP_MAX_AGE_HOURS)
        await asyncio.sleep(interval)
