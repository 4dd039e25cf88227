"""
Storage Module - Black Box Interface

Purpose: Abstract all data persistence
Interface: StorageModule.connect(), RoomStore.create()/get()/put()/delete()/exists()/scan()
Hidden: Redis specifics, connection pooling, key naming, TTL bookkeeping

Can be replaced with any key-value backend offering expiry and cursor scans
without affecting other modules.
"""

from typing import Optional

import redis.asyncio as redis

from .store import DEFAULT_ROOM_TTL, ROOM_KEY_PREFIX, RoomStore


class StorageModule:
    """Black box storage abstraction."""

    def __init__(self, connection_url: str, password: Optional[str] = None):
        """Initialize storage with connection URL."""
        self.url = connection_url
        self.password = password
        self._client = None

    @classmethod
    def from_config(cls, config) -> "StorageModule":
        """Build from ConfigModule, preferring an explicit REDIS_URL."""
        url = config.get("redis_url") or (
            f"redis://{config.get('redis_host')}:{config.get('redis_port')}/{config.get('redis_db')}"
        )
        # Password passed separately to avoid URL encoding issues
        return cls(url, password=config.get("redis_password"))

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                password=self.password,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


__all__ = ["StorageModule", "RoomStore", "ROOM_KEY_PREFIX", "DEFAULT_ROOM_TTL"]
