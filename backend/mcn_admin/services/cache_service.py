"""
MCN Admin Dashboard - Cache Service
===================================
Best-effort Redis cache for short-lived dashboard responses.
Redis being down never fails a request; reads simply go to the database.
"""

import json
from datetime import timedelta
from typing import Any, Optional

import redis.asyncio as redis

from mcn_admin.core.config import get_settings
from mcn_admin.core.logging import get_logger

logger = get_logger("cache_service")


class CacheService:
    """Redis-based JSON cache."""

    def __init__(self):
        self._client: Optional[redis.Redis] = None

    async def connect(self, url: Optional[str] = None):
        try:
            self._client = redis.from_url(
                url or get_settings().redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._client.ping()
            logger.info("redis_connected")
        except Exception as e:  # noqa: BLE001
            logger.error("redis_connection_failed", error=str(e))
            self._client = None

    async def disconnect(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def get_json(self, key: str) -> Optional[Any]:
        if not self._client:
            return None
        try:
            raw = await self._client.get(key)
        except Exception as e:  # noqa: BLE001
            logger.warning("cache_get_error", key=key, error=str(e))
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, value: Any, ttl: Optional[timedelta] = None):
        if not self._client:
            return
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
            if ttl:
                await self._client.setex(key, ttl, payload)
            else:
                await self._client.set(key, payload)
        except Exception as e:  # noqa: BLE001
            logger.warning("cache_set_error", key=key, error=str(e))

    async def delete_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``. Returns how many were removed."""
        if not self._client:
            return 0
        removed = 0
        try:
            async for key in self._client.scan_iter(match=f"{prefix}*", count=500):
                removed += await self._client.delete(key)
        except Exception as e:  # noqa: BLE001
            logger.warning("cache_delete_error", prefix=prefix, error=str(e))
        return removed


cache_service = CacheService()
