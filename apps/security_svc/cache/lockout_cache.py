# apps/security_svc/cache/lockout_cache.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional

from redis.exceptions import RedisError

from libs.domain.dto.security import AccountLockout
from libs.infra.central_redis_client import CentralRedisClient
from libs.utils.redis_keys import key_security_lockout

log = logging.getLogger(__name__)


class LockoutCache:
    """
    Read-through кэш активных блокировок в Redis.
    Источник истины всегда хранилище: при любой ошибке Redis кэш молча
    пропускается, а TTL ключа не превышает остаток блокировки.
    """

    def __init__(self, redis: CentralRedisClient) -> None:
        self.redis = redis

    async def get(self, email: str, now: datetime) -> Optional[AccountLockout]:
        try:
            data = await self.redis.get_json(key_security_lockout(email))
        except RedisError as e:
            log.warning(f"LockoutCache.get: Redis недоступен: {e}")
            return None
        if not data:
            return None
        lockout = AccountLockout.model_validate(data)
        return lockout if lockout.unlock_at > now else None

    async def put(self, lockout: AccountLockout, now: datetime) -> None:
        ttl = math.ceil((lockout.unlock_at - now).total_seconds())
        if ttl <= 0:
            return
        try:
            await self.redis.set_json(
                key_security_lockout(lockout.email), lockout.model_dump(mode="json"), ex=ttl
            )
        except RedisError as e:
            log.warning(f"LockoutCache.put: Redis недоступен: {e}")

    async def invalidate(self, email: str) -> None:
        try:
            await self.redis.delete(key_security_lockout(email))
        except RedisError as e:
            log.warning(f"LockoutCache.invalidate: Redis недоступен: {e}")
