# apps/security_svc/db/i_security_store.py
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from libs.domain.dto.security import (
    AccountLockout,
    AuditEvent,
    LoginAttempt,
    LoginRecord,
    UserSecurityProfile,
)

# previous_lockout_count -> длительность новой блокировки
DurationPolicy = Callable[[int], timedelta]


class ISecurityStore(ABC):
    """
    Абстракция над хранилищем подсистемы безопасности.
    Все email приходят уже в нижнем регистре.
    Ошибки хранилища поднимаются как PersistenceError.
    """

    # --- loginAttempts ---
    @abstractmethod
    async def add_login_attempt(self, attempt: LoginAttempt) -> None: ...

    @abstractmethod
    async def find_login_attempts(self, email: str, since: datetime) -> List[LoginAttempt]:
        """Попытки с timestamp > since (индексированный диапазонный запрос)."""
        ...

    @abstractmethod
    async def delete_login_attempts(self, email: str) -> int: ...

    @abstractmethod
    async def purge_login_attempts(self, before: datetime) -> int: ...

    # --- accountLockouts ---
    @abstractmethod
    async def get_lockout(self, email: str) -> Optional[AccountLockout]: ...

    @abstractmethod
    async def acquire_lockout(
        self,
        email: str,
        *,
        failed_attempts: int,
        now: datetime,
        duration_for: DurationPolicy,
    ) -> Optional[AccountLockout]:
        """
        Атомарно: читает счётчик блокировок, проверяет, нет ли активной блокировки,
        пишет новую с lockout_count = previous + 1.
        Возвращает None, если аккаунт уже заблокирован: повторный lock ничего не меняет.
        """
        ...

    @abstractmethod
    async def delete_lockout(self, email: str, *, expired_at: Optional[datetime] = None) -> bool:
        """Удаляет блокировку. С expired_at удаляет только если unlock_at <= expired_at."""
        ...

    @abstractmethod
    async def purge_expired_lockouts(self, now: datetime) -> int: ...

    # --- userSecurityProfile ---
    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserSecurityProfile]: ...

    @abstractmethod
    async def save_profile(self, profile: UserSecurityProfile) -> None:
        """Upsert всего документа профиля."""
        ...

    # --- loginHistory ---
    @abstractmethod
    async def append_login_record(self, record: LoginRecord) -> None: ...

    @abstractmethod
    async def count_login_records(self, user_id: str, *, since: datetime, success: bool) -> int: ...

    # --- auditLog ---
    @abstractmethod
    async def append_audit_event(self, event: AuditEvent) -> None: ...
