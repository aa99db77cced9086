# apps/security_svc/cache/rpc_reply_cache.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from redis.exceptions import RedisError

from libs.infra.central_redis_client import CentralRedisClient
from libs.utils.redis_keys import key_security_rpc_reply

log = logging.getLogger(__name__)


class RpcReplyCache:
    """
    Ответы RPC, сохранённые по correlation_id на ttl_sec.
    Сообщение, вернувшееся через retry/DLX после обработки, получает тот же ответ,
    а обработчик второй раз не вызывается. Без Redis дедупликации нет.
    """

    def __init__(self, redis: CentralRedisClient, ttl_sec: int = 600) -> None:
        self.redis = redis
        self.ttl_sec = ttl_sec

    async def get(self, correlation_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.redis.get_json(key_security_rpc_reply(correlation_id))
        except RedisError as e:
            log.warning(f"RpcReplyCache.get: Redis недоступен: {e}")
            return None

    async def put(self, correlation_id: str, body: Dict[str, Any]) -> None:
        try:
            await self.redis.set_json(key_security_rpc_reply(correlation_id), body, ex=self.ttl_sec)
        except RedisError as e:
            log.warning(f"RpcReplyCache.put: Redis недоступен: {e}")
