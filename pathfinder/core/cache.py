import logging
from datetime import datetime, timezone
from typing import Any, Optional

import redis.asyncio as redis

from pathfinder.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self):
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Initialize Redis connection pool."""
        self.redis = redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)

    async def disconnect(self):
        if self.redis:
            await self.redis.aclose()

    async def get(self, key: str, default: Any = None) -> Any:
        try:
            value = await self.redis.get(key)
            return default if value is None else value
        except Exception as e:
            logger.error(f"Cache get error: {e}")
            return default

    # Daily quota on outbound text-generation calls
    def feedback_key(self, user_id: str) -> str:
        day = datetime.now(timezone.utc).strftime("%Y%m%d")
        return f"aifb:{day}:{user_id}"

    async def can_generate(self, user_id: str) -> bool:
        count = await self.get(self.feedback_key(user_id), 0)
        return int(count) < settings.AI_FEEDBACK_DAILY_LIMIT

    async def bump_generation(self, user_id: str) -> None:
        key = self.feedback_key(user_id)
        try:
            pipe = self.redis.pipeline()
            pipe.incr(key, 1)
            pipe.expire(key, 86400)
            await pipe.execute()
        except Exception as e:
            logger.error(f"Cache bump error: {e}")


cache = RedisCache()


def get_cache() -> RedisCache:
    return cache
