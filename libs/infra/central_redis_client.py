# libs/infra/central_redis_client.py

import json
import logging
from typing import Optional
import uuid
import datetime
import redis.asyncio as redis_asyncio


class CentralRedisClient:
    """
    Низкоуровневый клиент для центрального Redis.
    Использует redis-py (версии 5+) для асинхронной работы.
    Значения хранятся JSON-строками; сервис безопасности держит здесь только кэш блокировок.
    """
    def __init__(
        self,
        redis_url: str,
        password: Optional[str] = None,
        max_connections: int = 10
    ):
        self.logger = logging.getLogger("central_redis_client")
        self._redis_url = redis_url
        self._password = password
        self._max_connections = max_connections
        self.redis: Optional[redis_asyncio.Redis] = None
        self.logger.info("✨ CentralRedisClient инициализирован, ожидание подключения.")

    async def connect(self):
        """Асинхронно инициализирует пул подключений к Redis."""
        if self.redis is None:
            self.logger.info(f"🔧 Подключение к центральному Redis: {self._redis_url}...")
            try:
                self.redis = redis_asyncio.from_url(
                    self._redis_url, password=self._password, decode_responses=True,
                    max_connections=self._max_connections,
                    socket_timeout=5, socket_connect_timeout=5)
                await self.redis.ping()
                self.logger.info("✅ Подключение к центральному Redis успешно установлено.")
            except Exception as e:
                self.logger.critical(f"❌ Критическая ошибка при подключении к Redis: {e}", exc_info=True)
                self.redis = None
                raise

    async def close(self):
        if self.redis:
            await self.redis.aclose()
        self.redis = None
        self.logger.info("✅ Соединения с Redis успешно закрыты.")

    async def ping(self) -> bool:
        if self.redis is None:
            return False
        return bool(await self.redis.ping())

    def _json_serializer(self, obj):
        if isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        if isinstance(obj, uuid.UUID):
            return str(obj)
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

    # --- JSON ключ-значение ---

    async def get_json(self, key: str) -> Optional[dict]:
        if self.redis is None: self.logger.error("Redis не инициализирован."); return None
        data = await self.redis.get(key)
        if data:
            try:
                return json.loads(data)
            except json.JSONDecodeError as e:
                self.logger.error(f"Ошибка десериализации JSON для ключа '{key}': {e}", exc_info=True)
                return None
        return None

    async def set_json(self, key: str, value: dict, ex: Optional[int] = None):
        if self.redis is None: self.logger.error("Redis не инициализирован."); return
        await self.redis.set(key, json.dumps(value, default=self._json_serializer), ex=ex)

    async def delete(self, *keys: str) -> int:
        if self.redis is None: self.logger.error("Redis не инициализирован."); return 0
        return await self.redis.delete(*keys)
