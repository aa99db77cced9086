# apps/security_svc/handlers/check_lock_rpc_handler.py
from __future__ import annotations

from libs.domain.dto.rpc import RpcResponse
from libs.domain.dto.security import EmailRequest
from ..services.login_guard import LoginGuard
from .i_security_rpc_handler import ISecurityRpcHandler


class CheckLockRpcHandler(ISecurityRpcHandler):
    """Вызывается auth-сервисом до проверки пароля."""

    request_model = EmailRequest

    def __init__(self, login_guard: LoginGuard) -> None:
        self.login_guard = login_guard

    async def process(self, dto: EmailRequest) -> RpcResponse:
        status = await self.login_guard.ensure_not_locked(dto.email)
        return RpcResponse(success=True, data=status)
