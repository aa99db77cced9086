# apps/security_svc/services/attempt_recorder.py
from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from libs.app.errors import PersistenceError
from libs.domain.dto.base import Clock, utcnow
from libs.domain.dto.security import AccountLockout, LoginAttempt, normalize_email
from apps.security_svc.config.security_policy import SecurityPolicy
from apps.security_svc.db.i_security_store import ISecurityStore
from .lockout_engine import LockoutEngine

log = logging.getLogger(__name__)


class AttemptRecorder:
    """Учёт неудачных попыток входа по email."""

    def __init__(
        self,
        store: ISecurityStore,
        lockout_engine: LockoutEngine,
        policy: SecurityPolicy,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.lockout_engine = lockout_engine
        self.policy = policy
        self.clock = clock

    async def record_failed_attempt(self, email: str) -> Optional[AccountLockout]:
        """
        Пишет попытку и сразу проверяет порог блокировки.
        Ошибки хранилища не пробрасываются: вход не должен падать из-за учёта попыток.
        Возвращает новую блокировку, если эта попытка её вызвала.
        """
        email = normalize_email(email)
        now = self.clock()
        try:
            recent = await self.store.find_login_attempts(email, now - self.policy.attempt_window)
            await self.store.add_login_attempt(
                LoginAttempt(email=email, timestamp=now, attempt_number=len(recent) + 1)
            )
            log.info(f"Неудачная попытка входа №{len(recent) + 1} для {email}", extra={"email": email})
            return await self.lockout_engine.check_and_lock(email)
        except PersistenceError as e:
            log.error(f"record_failed_attempt: не удалось учесть попытку {email}: {e}")
            return None

    async def get_recent_failed_attempts(
        self, email: str, window_minutes: Optional[int] = None
    ) -> List[LoginAttempt]:
        """Попытки за окно (по умолчанию attempt_window_minutes). При ошибке хранилища пустой список."""
        email = normalize_email(email)
        window = (
            timedelta(minutes=window_minutes) if window_minutes is not None else self.policy.attempt_window
        )
        try:
            return await self.store.find_login_attempts(email, self.clock() - window)
        except PersistenceError as e:
            log.error(f"get_recent_failed_attempts: {email}: {e}")
            return []

    async def clear_failed_attempts(self, email: str) -> None:
        """Сбрасывает попытки и активную блокировку (успешный вход). Счётчик блокировок остаётся."""
        email = normalize_email(email)
        try:
            await self.store.delete_login_attempts(email)
            await self.lockout_engine.unlock(email)
        except PersistenceError as e:
            log.error(f"clear_failed_attempts: {email}: {e}")

    async def cleanup_old_records(self, max_age_hours: int = 24) -> int:
        """Удаляет старые попытки и истёкшие блокировки. Возвращает число удалённых записей."""
        now = self.clock()
        attempts = await self.store.purge_login_attempts(now - timedelta(hours=max_age_hours))
        lockouts = await self.store.purge_expired_lockouts(now)
        if attempts or lockouts:
            log.info(f"Очистка: удалено попыток={attempts}, истёкших блокировок={lockouts}")
        return attempts + lockouts
