# apps/security_svc/providers/i_auth_provider.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from libs.domain.dto.security import AccountIdentity


class IAuthProvider(ABC):
    """
    Внешний провайдер учётных данных. Сервис безопасности сам паролей не хранит:
    проверка текущего пароля, замена и сброс идут через провайдера.
    """

    @abstractmethod
    async def reauthenticate(self, identity: AccountIdentity, current_secret: str) -> None:
        """Проверяет текущий пароль. Неверный пароль -> AuthError."""
        ...

    @abstractmethod
    async def update_credential(self, identity: AccountIdentity, new_secret: str) -> None: ...

    @abstractmethod
    async def dispatch_credential_reset(self, email: str) -> None:
        """Запускает внеполосный сброс (письмо со ссылкой). Лимит провайдера -> RateError."""
        ...

    @abstractmethod
    async def resolve_user_id(self, email: str) -> Optional[str]: ...
