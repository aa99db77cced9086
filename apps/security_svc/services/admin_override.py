# apps/security_svc/services/admin_override.py
from __future__ import annotations

import logging

from libs.app.errors import PersistenceError
from libs.domain.dto.base import Clock, utcnow
from libs.domain.dto.security import AuditEvent, normalize_email
from apps.security_svc.db.i_security_store import ISecurityStore
from .lockout_engine import LockoutEngine

log = logging.getLogger(__name__)

ACTION_ADMIN_UNLOCK = "admin.unlock"


class AdminOverrideService:
    def __init__(self, store: ISecurityStore, lockout_engine: LockoutEngine, clock: Clock = utcnow) -> None:
        self.store = store
        self.lockout_engine = lockout_engine
        self.clock = clock

    async def admin_unlock_account(self, email: str, admin_email: str) -> bool:
        """
        Досрочная разблокировка администратором. Не бросает исключений.
        False только если блокировка или попытки не удалены; сбой записи аудита лишь логируется.
        """
        email = normalize_email(email)
        try:
            had_lock = await self.lockout_engine.unlock(email)
            cleared = await self.store.delete_login_attempts(email)
        except Exception:
            log.exception(f"admin_unlock_account: не удалось разблокировать {email} (админ {admin_email})")
            return False

        event = AuditEvent(
            actor=normalize_email(admin_email),
            action=ACTION_ADMIN_UNLOCK,
            target=email,
            details={"had_active_lock": had_lock, "cleared_attempts": cleared},
            created_at=self.clock(),
        )
        try:
            await self.store.append_audit_event(event)
        except PersistenceError as e:
            log.error(f"admin_unlock_account: аудит не записан для {email}: {e}", extra={"email": email})

        log.info(f"Аккаунт {email} разблокирован администратором {admin_email}", extra={"email": email})
        return True
