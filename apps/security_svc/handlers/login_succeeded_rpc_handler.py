# apps/security_svc/handlers/login_succeeded_rpc_handler.py
from __future__ import annotations

from libs.app.errors import ValidationError
from libs.domain.dto.rpc import RpcResponse
from libs.domain.dto.security import LoginEventRequest
from ..services.login_guard import LoginGuard
from .i_security_rpc_handler import ISecurityRpcHandler


class LoginSucceededRpcHandler(ISecurityRpcHandler):
    request_model = LoginEventRequest

    def __init__(self, login_guard: LoginGuard) -> None:
        self.login_guard = login_guard

    async def process(self, dto: LoginEventRequest) -> RpcResponse:
        if not dto.user_id:
            raise ValidationError(["user_id is required for a successful login"])
        await self.login_guard.on_login_succeeded(
            dto.email, dto.user_id, dto.ip_address, dto.user_agent
        )
        return RpcResponse(success=True)
