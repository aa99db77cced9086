# apps/security_svc/services/security_status.py
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from libs.app.errors import PersistenceError
from libs.domain.dto.base import Clock, utcnow
from libs.domain.dto.security import (
    AccountSecurityStatus,
    LastLoginInfo,
    LockStatus,
    LoginRecord,
    UserSecurityProfile,
    normalize_email,
)
from apps.security_svc.config.security_policy import SecurityPolicy
from apps.security_svc.db.i_security_store import ISecurityStore
from .attempt_recorder import AttemptRecorder
from .lockout_engine import LockoutEngine

log = logging.getLogger(__name__)


class SecurityStatusService:
    """Сводки для UI и журнал входов. Все чтения здесь fail-open."""

    def __init__(
        self,
        store: ISecurityStore,
        attempt_recorder: AttemptRecorder,
        lockout_engine: LockoutEngine,
        policy: SecurityPolicy,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.attempt_recorder = attempt_recorder
        self.lockout_engine = lockout_engine
        self.policy = policy
        self.clock = clock

    async def is_account_locked(self, email: str) -> LockStatus:
        return await self.lockout_engine.is_locked(normalize_email(email))

    async def get_account_security_status(self, email: str) -> AccountSecurityStatus:
        email = normalize_email(email)
        try:
            attempts = await self.attempt_recorder.get_recent_failed_attempts(email)
            status = await self.lockout_engine.is_locked(email)
            lockout_info = await self.lockout_engine.get_lockout(email) if status.is_locked else None
        except PersistenceError as e:
            log.error(f"get_account_security_status: {email}: {e}")
            return AccountSecurityStatus()
        return AccountSecurityStatus(
            recent_failed_attempts=len(attempts),
            is_locked=status.is_locked,
            lockout_info=lockout_info,
        )

    async def record_login_attempt(
        self,
        user_id: str,
        success: bool,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Журнал входа и отметки в профиле. Best-effort: ошибки только логируются."""
        now = self.clock()
        try:
            await self.store.append_login_record(
                LoginRecord(
                    user_id=user_id,
                    timestamp=now,
                    success=success,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            )
            profile = await self.store.get_profile(user_id) or UserSecurityProfile(user_id=user_id)
            updates: Dict[str, Any] = {"last_login_attempt": now}
            if success:
                updates["last_successful_login"] = now
            await self.store.save_profile(profile.model_copy(update=updates))
        except PersistenceError as e:
            log.error(f"record_login_attempt: {user_id}: {e}", extra={"user_id": user_id})

    async def get_last_login_info(self, user_id: str) -> LastLoginInfo:
        since = self.clock() - timedelta(hours=self.policy.login_history_window_hours)
        try:
            profile = await self.store.get_profile(user_id)
            failed = await self.store.count_login_records(user_id, since=since, success=False)
        except PersistenceError as e:
            log.error(f"get_last_login_info: {user_id}: {e}", extra={"user_id": user_id})
            return LastLoginInfo()
        return LastLoginInfo(
            last_successful_login=profile.last_successful_login if profile else None,
            recent_failed_attempts=failed,
        )

    def get_security_audit(self) -> Dict[str, Any]:
        """Сводка действующей политики для админки."""
        p = self.policy
        return {
            "lockout": {
                "max_failed_attempts": p.max_failed_attempts,
                "attempt_window_minutes": p.attempt_window_minutes,
                "base_lockout_minutes": p.base_lockout_minutes,
                "max_lockout_minutes": p.max_lockout_minutes,
                "progressive_multiplier": p.progressive_multiplier,
                "fail_open": p.lockout_fail_open,
                "lock_cache_enabled": self.lockout_engine.cache is not None,
            },
            "password": {
                "history_size": p.password_history_size,
                "min_change_interval_hours": p.min_password_change_interval_hours,
                "hashing": "bcrypt",
            },
            "recovery": {
                "min_security_questions": p.min_security_questions,
                "max_security_questions": p.max_security_questions,
                "min_answer_length": p.min_answer_length,
                "min_correct_answers": p.recovery_min_correct_answers,
            },
        }
