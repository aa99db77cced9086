# apps/security_svc/services/password_lifecycle.py
from __future__ import annotations

import logging
import math
from datetime import timedelta

from libs.app.errors import PersistenceError, ReuseError, TooSoonError, ValidationError
from libs.domain.dto.base import Clock, utcnow
from libs.domain.dto.security import (
    AccountIdentity,
    ChangeEligibility,
    PasswordValidationResult,
    UserSecurityProfile,
)
from apps.security_svc.config.security_policy import SecurityPolicy
from apps.security_svc.db.i_security_store import ISecurityStore
from apps.security_svc.providers.i_auth_provider import IAuthProvider
from apps.security_svc.utils.password_manager import PasswordManager
from apps.security_svc.utils.password_policy import validate_password

log = logging.getLogger(__name__)


class PasswordLifecycleService:
    """
    Смена пароля: сила, интервал между сменами, запрет повторов, повторная аутентификация.
    Сам пароль хранит провайдер; здесь только история хешей.
    """

    def __init__(
        self,
        store: ISecurityStore,
        auth_provider: IAuthProvider,
        password_manager: PasswordManager,
        policy: SecurityPolicy,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.auth_provider = auth_provider
        self.password_manager = password_manager
        self.policy = policy
        self.clock = clock

    def validate_password(self, password: str) -> PasswordValidationResult:
        return validate_password(password)

    def ensure_strong(self, password: str) -> None:
        result = validate_password(password)
        if not result.is_valid:
            raise ValidationError(result.errors, "Password validation failed: " + ", ".join(result.errors))

    async def change_password(
        self, identity: AccountIdentity, current_password: str, new_password: str
    ) -> None:
        self.ensure_strong(new_password)

        eligibility = await self.can_change_password(identity.user_id)
        if not eligibility.allowed:
            raise TooSoonError(eligibility.reason or "Password change is not allowed yet",
                               hours_remaining=eligibility.hours_remaining or 0)

        await self.ensure_not_reused(identity.user_id, new_password)

        # Ошибки провайдера (AuthError, RateError, ProviderUnavailableError) идут наверх как есть
        await self.auth_provider.reauthenticate(identity, current_password)
        await self.auth_provider.update_credential(identity, new_password)

        await self.remember_password(identity.user_id, new_password)
        log.info(f"Пароль пользователя {identity.user_id} изменён", extra={"user_id": identity.user_id})

    async def can_change_password(self, user_id: str) -> ChangeEligibility:
        """Только по времени последней смены. Нет профиля или хранилище недоступно => можно."""
        try:
            profile = await self.store.get_profile(user_id)
        except PersistenceError as e:
            log.error(f"can_change_password: {user_id}: {e}", extra={"user_id": user_id})
            return ChangeEligibility(allowed=True)

        if profile is None or profile.last_password_change is None:
            return ChangeEligibility(allowed=True)

        interval = self.policy.min_password_change_interval_hours
        hours_since = (self.clock() - profile.last_password_change) / timedelta(hours=1)
        if hours_since < interval:
            hours_remaining = math.ceil(interval - hours_since)
            return ChangeEligibility(
                allowed=False,
                reason=(
                    f"Password can only be changed once every {interval} hours. "
                    f"Please wait {hours_remaining} more hour(s)."
                ),
                hours_remaining=hours_remaining,
            )
        return ChangeEligibility(allowed=True)

    async def is_password_reused(self, user_id: str, password: str) -> bool:
        try:
            profile = await self.store.get_profile(user_id)
        except PersistenceError as e:
            log.error(f"is_password_reused: {user_id}: {e}", extra={"user_id": user_id})
            return False
        if profile is None:
            return False
        return self.password_manager.matches_any(password, profile.password_hashes)

    async def ensure_not_reused(self, user_id: str, password: str) -> None:
        if await self.is_password_reused(user_id, password):
            # Не сообщаем, какой именно из старых паролей совпал
            raise ReuseError(
                f"Cannot reuse any of your last {self.policy.password_history_size} passwords. "
                "Please choose a different password."
            )

    async def remember_password(self, user_id: str, new_password: str) -> UserSecurityProfile:
        """
        Кладёт хеш нового пароля в начало истории и отмечает время смены.
        Основная запись операции: PersistenceError пробрасывается.
        """
        now = self.clock()
        profile = await self.store.get_profile(user_id) or UserSecurityProfile(user_id=user_id)
        new_hash = self.password_manager.hash_secret(new_password)
        updated = profile.model_copy(
            update={
                "password_hashes": [new_hash, *profile.password_hashes][: self.policy.password_history_size],
                "last_password_change": now,
                "password_change_history": [*profile.password_change_history, now][
                    -self.policy.password_change_history_size:
                ],
            }
        )
        await self.store.save_profile(updated)
        return updated
