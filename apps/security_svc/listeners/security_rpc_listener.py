from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from libs.app.errors import ErrorCode
from libs.messaging.base_listener import BaseMicroserviceListener
from libs.messaging.i_message_bus import IMessageBus

from apps.security_svc.cache.rpc_reply_cache import RpcReplyCache
from apps.security_svc.handlers.i_security_rpc_handler import ISecurityRpcHandler

log = logging.getLogger(__name__)


class SecurityRpcListener(BaseMicroserviceListener):
    """
    RPC-слушатель процесса входа.
    Вход: envelope с payload или плоский DTO.
    Ответ: RpcResponse в reply_to с тем же correlation_id.
    С reply_cache повторная доставка того же correlation_id получает сохранённый ответ.
    """

    def __init__(
        self,
        *,
        name: str,
        queue_name: str,
        message_bus: IMessageBus,
        handler: ISecurityRpcHandler,
        prefetch: int = 16,
        consumer_count: int = 1,
        max_retries: int = 3,
        reply_cache: Optional[RpcReplyCache] = None,
    ) -> None:
        super().__init__(
            name=name,
            queue_name=queue_name,
            message_bus=message_bus,
            prefetch=prefetch,
            consumer_count=consumer_count,
            max_retries=max_retries,
        )
        self._handler = handler
        self._reply_cache = reply_cache

    async def process_message(self, data: Dict[str, Any], meta: Dict[str, Any]) -> None:
        correlation_id = meta.get("correlation_id")
        if self._reply_cache and correlation_id:
            cached = await self._reply_cache.get(correlation_id)
            if cached is not None:
                log.info(f"{self.name}: повторная доставка {correlation_id}, отдаём сохранённый ответ")
                await self._reply(reply_to=meta.get("reply_to"), correlation_id=correlation_id, body=cached)
                return

        payload: Dict[str, Any]
        if "payload" in data and isinstance(data["payload"], dict):
            payload = data["payload"]
        else:
            payload = data

        try:
            req = self._handler.request_model.model_validate(payload)
        except ValidationError as ve:
            await self._reply(
                reply_to=meta.get("reply_to"),
                correlation_id=meta.get("correlation_id"),
                body={
                    "success": False,
                    "error_code": ErrorCode.VALIDATION_FAILED.value,
                    "message": "Invalid request payload",
                    "details": {"errors": ve.errors(include_url=False, include_context=False)},
                },
            )
            return

        resp = await self._handler.handle(req)
        resp.correlation_id = correlation_id
        body = resp.model_dump(mode="json")
        if self._reply_cache and correlation_id:
            await self._reply_cache.put(correlation_id, body)

        await self._reply(reply_to=meta.get("reply_to"), correlation_id=correlation_id, body=body)

    async def _reply(self, *, reply_to: Optional[str], correlation_id: Optional[str], body: Dict[str, Any]) -> None:
        if not reply_to:
            return
        await self.bus.publish_rpc_response(reply_to=reply_to, response=body, correlation_id=correlation_id)
