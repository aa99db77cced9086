# apps/security_svc/services/login_guard.py
from __future__ import annotations

import logging
from typing import Optional

from libs.app.errors import LockoutError
from libs.domain.dto.security import LockStatus, normalize_email
from .attempt_recorder import AttemptRecorder
from .lockout_engine import LockoutEngine
from .security_status import SecurityStatusService

log = logging.getLogger(__name__)


class LoginGuard:
    """
    Точки встраивания в процесс входа auth-сервиса:
    до проверки пароля, после неудачи и после успеха.
    """

    def __init__(
        self,
        attempt_recorder: AttemptRecorder,
        lockout_engine: LockoutEngine,
        status_service: SecurityStatusService,
    ) -> None:
        self.attempt_recorder = attempt_recorder
        self.lockout_engine = lockout_engine
        self.status_service = status_service

    async def ensure_not_locked(self, email: str) -> LockStatus:
        status = await self.lockout_engine.is_locked(normalize_email(email))
        if status.is_locked:
            raise LockoutError(
                "Account is temporarily locked due to multiple failed login attempts. "
                f"Please try again in {status.remaining_minutes} minutes.",
                remaining_minutes=status.remaining_minutes,
                lockout_count=status.lockout_count,
            )
        return status

    async def on_login_failed(
        self,
        email: str,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LockStatus:
        email = normalize_email(email)
        await self.attempt_recorder.record_failed_attempt(email)
        if user_id:
            await self.status_service.record_login_attempt(user_id, False, ip_address, user_agent)

        status = await self.lockout_engine.is_locked(email)
        if status.is_locked:
            raise LockoutError(
                "Too many failed login attempts. "
                f"Account is now locked for {status.remaining_minutes} minutes.",
                remaining_minutes=status.remaining_minutes,
                lockout_count=status.lockout_count,
            )
        return status

    async def on_login_succeeded(
        self,
        email: str,
        user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        await self.attempt_recorder.clear_failed_attempts(email)
        await self.status_service.record_login_attempt(user_id, True, ip_address, user_agent)
