# apps/security_svc/services/lockout_engine.py
from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Optional

from libs.app.errors import PersistenceError
from libs.domain.dto.base import Clock, utcnow
from libs.domain.dto.security import AccountLockout, LockStatus
from apps.security_svc.cache.lockout_cache import LockoutCache
from apps.security_svc.config.security_policy import SecurityPolicy
from apps.security_svc.db.i_security_store import ISecurityStore

log = logging.getLogger(__name__)


def remaining_minutes(lockout: AccountLockout, now) -> int:
    return math.ceil((lockout.unlock_at - now) / timedelta(minutes=1))


class LockoutEngine:
    """
    Блокировка аккаунта по email: UNLOCKED -> LOCKED -> UNLOCKED(истекла) -> LOCKED(дольше) ...
    Каждая следующая блокировка длиннее: min(BASE * MULTIPLIER^previous, MAX) минут.
    """

    def __init__(
        self,
        store: ISecurityStore,
        policy: SecurityPolicy,
        cache: Optional[LockoutCache] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.policy = policy
        self.cache = cache
        self.clock = clock

    async def check_and_lock(self, email: str) -> Optional[AccountLockout]:
        """Блокирует аккаунт, если в окне набралось max_failed_attempts неудач."""
        since = self.clock() - self.policy.attempt_window
        attempts = await self.store.find_login_attempts(email, since)
        if len(attempts) >= self.policy.max_failed_attempts:
            return await self.lock(email, len(attempts))
        return None

    async def lock(self, email: str, failed_attempts: int) -> Optional[AccountLockout]:
        """
        Выдаёт новую блокировку. Чтение счётчика, проверка активной блокировки и запись
        выполняются хранилищем атомарно; при уже активной блокировке возвращает None.
        """
        now = self.clock()
        lockout = await self.store.acquire_lockout(
            email,
            failed_attempts=failed_attempts,
            now=now,
            duration_for=self.policy.lockout_duration,
        )
        if lockout is None:
            return None

        await self.store.delete_login_attempts(email)
        if self.cache:
            await self.cache.put(lockout, now)

        log.warning(
            f"Аккаунт {email} заблокирован на {lockout.duration_minutes} мин "
            f"(блокировка №{lockout.lockout_count})",
            extra={"email": email, "lockout_count": lockout.lockout_count},
        )
        return lockout

    async def is_locked(self, email: str) -> LockStatus:
        now = self.clock()
        try:
            lockout = await self.cache.get(email, now) if self.cache else None
            if lockout is None:
                lockout = await self.store.get_lockout(email)
        except PersistenceError:
            if self.policy.lockout_fail_open:
                log.error(f"is_locked: хранилище недоступно, {email} считаем разблокированным")
                return LockStatus(is_locked=False)
            log.error(f"is_locked: хранилище недоступно, {email} считаем заблокированным")
            return LockStatus(is_locked=True)

        if lockout is None:
            return LockStatus(is_locked=False)

        if now >= lockout.unlock_at:
            await self._expire(email, now)
            return LockStatus(is_locked=False)

        return LockStatus(
            is_locked=True,
            unlock_at=lockout.unlock_at,
            remaining_minutes=remaining_minutes(lockout, now),
            lockout_count=lockout.lockout_count,
        )

    async def get_lockout(self, email: str) -> Optional[AccountLockout]:
        return await self.store.get_lockout(email)

    async def unlock(self, email: str) -> bool:
        """Снимает блокировку досрочно. Счётчик блокировок не трогаем."""
        removed = await self.store.delete_lockout(email)
        if self.cache:
            await self.cache.invalidate(email)
        return removed

    async def _expire(self, email: str, now) -> None:
        # Удаляем только если запись всё ещё истёкшая: свежую блокировку не трогаем
        try:
            await self.store.delete_lockout(email, expired_at=now)
        except PersistenceError:
            log.warning(f"Не удалось удалить истёкшую блокировку {email}")
        if self.cache:
            await self.cache.invalidate(email)
