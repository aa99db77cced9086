# apps/security_svc/providers/rpc_auth_provider.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from aio_pika.exceptions import AMQPError

from libs.app.errors import (
    AuthError,
    ErrorCode,
    ProviderUnavailableError,
    RateError,
)
from libs.domain.dto.base import EventMessage
from libs.domain.dto.security import AccountIdentity
from libs.messaging.i_message_bus import IMessageBus
from libs.messaging.rabbitmq_names import Events, Exchanges as Ex, Queues as Q
from libs.utils.ids import new_correlation_id
from .i_auth_provider import IAuthProvider

log = logging.getLogger(__name__)

# Коды ошибок auth-сервиса, которые пробрасываем как RateError
_RATE_CODES = {ErrorCode.AUTH_RATE_LIMITED.value, ErrorCode.AUTH_FORBIDDEN.value}


class RpcAuthProvider(IAuthProvider):
    """Провайдер поверх RabbitMQ: RPC в auth-сервис и событие на сброс пароля."""

    def __init__(self, bus: IMessageBus) -> None:
        self.bus = bus

    async def _call(self, queue_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        corr_id = new_correlation_id()
        resp = await self.bus.call_rpc(Ex.RPC, queue_name, payload, correlation_id=corr_id)
        if resp is None:
            raise ProviderUnavailableError(f"Auth provider did not respond ({queue_name})")
        if not isinstance(resp, dict) or "success" not in resp:
            log.error(f"Некорректный ответ auth-провайдера на {queue_name}: {resp!r}")
            raise ProviderUnavailableError(
                "Auth provider returned a malformed reply", code=ErrorCode.RPC_BAD_RESPONSE
            )
        if not resp["success"]:
            code = resp.get("error_code")
            message = resp.get("message") or "Auth provider rejected the request"
            if code == ErrorCode.AUTH_INVALID_CREDENTIALS.value:
                raise AuthError(message)
            if code in _RATE_CODES:
                raise RateError(message)
            raise ProviderUnavailableError(message, code=ErrorCode.RPC_BAD_RESPONSE, details={"error_code": code})
        return resp.get("data") or {}

    async def reauthenticate(self, identity: AccountIdentity, current_secret: str) -> None:
        await self._call(
            Q.AUTH_REAUTHENTICATE_RPC,
            {"user_id": identity.user_id, "email": identity.email, "password": current_secret},
        )

    async def update_credential(self, identity: AccountIdentity, new_secret: str) -> None:
        await self._call(
            Q.AUTH_UPDATE_CREDENTIAL_RPC,
            {"user_id": identity.user_id, "email": identity.email, "password": new_secret},
        )

    async def dispatch_credential_reset(self, email: str) -> None:
        event = EventMessage(type=Events.AUTH_CREDENTIAL_RESET_REQUESTED, payload={"email": email})
        try:
            await self.bus.publish(
                Ex.EVENTS,
                Events.AUTH_CREDENTIAL_RESET_REQUESTED,
                event.model_dump(mode="json"),
                correlation_id=new_correlation_id(),
            )
        except (AMQPError, ConnectionError) as e:
            raise ProviderUnavailableError("Failed to dispatch credential reset") from e

    async def resolve_user_id(self, email: str) -> Optional[str]:
        data = await self._call(Q.AUTH_LOOKUP_ACCOUNT_RPC, {"email": email})
        user_id = data.get("user_id")
        return str(user_id) if user_id is not None else None
