"""Redis cache for weather context reads.

The cache is an optimization only: every Redis failure is logged at debug
level and behaves like an empty cache, so callers always fall through to the
database.
"""

import json
import logging

import redis.asyncio as redis

from hotelops.config import settings

logger = logging.getLogger(__name__)

WEATHER_KEY_PREFIX = "weather:context"


class CacheService:
    def __init__(self, redis_url: str | None = None, weather_ttl: int | None = None):
        self._url = redis_url or settings.redis_url
        self._weather_ttl = weather_ttl or settings.weather_cache_ttl_seconds
        self._redis: redis.Redis | None = None

    async def _client(self) -> redis.Redis | None:
        if self._redis is not None:
            return self._redis
        client = redis.from_url(self._url, encoding="utf-8", decode_responses=True)
        try:
            await client.ping()
        except Exception as e:
            logger.warning(f"Redis unavailable at {self._url}, weather cache disabled: {e}")
            await client.aclose()
            return None
        self._redis = client
        return client

    @staticmethod
    def weather_key(hotel_id: str) -> str:
        return f"{WEATHER_KEY_PREFIX}:{hotel_id}"

    async def get_weather_context(self, hotel_id: str) -> dict | None:
        try:
            client = await self._client()
            raw = await client.get(self.weather_key(hotel_id)) if client else None
            return json.loads(raw) if raw else None
        except Exception as e:
            logger.debug(f"Weather cache read failed for hotel {hotel_id}: {e}")
            return None

    async def set_weather_context(self, hotel_id: str, data: dict) -> None:
        try:
            client = await self._client()
            if client:
                await client.set(self.weather_key(hotel_id), json.dumps(data, default=str), ex=self._weather_ttl)
        except Exception as e:
            logger.debug(f"Weather cache write failed for hotel {hotel_id}: {e}")

    async def invalidate_weather_context(self, hotel_id: str) -> None:
        """Drop the cached context; called after every weather sync."""
        try:
            client = await self._client()
            if client:
                await client.delete(self.weather_key(hotel_id))
        except Exception as e:
            logger.debug(f"Weather cache invalidation failed for hotel {hotel_id}: {e}")

    async def close(self):
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
