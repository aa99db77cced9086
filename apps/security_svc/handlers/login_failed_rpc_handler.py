# apps/security_svc/handlers/login_failed_rpc_handler.py
from __future__ import annotations

from libs.domain.dto.rpc import RpcResponse
from libs.domain.dto.security import LoginEventRequest
from ..services.login_guard import LoginGuard
from .i_security_rpc_handler import ISecurityRpcHandler


class LoginFailedRpcHandler(ISecurityRpcHandler):
    """
    Не идемпотентен: каждый вызов добавляет неудачную попытку.
    Повторные доставки отсекает RpcReplyCache слушателя по correlation_id.
    """

    request_model = LoginEventRequest

    def __init__(self, login_guard: LoginGuard) -> None:
        self.login_guard = login_guard

    async def process(self, dto: LoginEventRequest) -> RpcResponse:
        # Если попытка привела к блокировке, клиент получит security.account_locked
        status = await self.login_guard.on_login_failed(
            dto.email, dto.user_id, dto.ip_address, dto.user_agent
        )
        return RpcResponse(success=True, data=status)
