"""
Persistent room store backed by Redis.

Stores serialized room records under ``room:{code}`` with an expiry. The store
knows nothing about the record's content; serialization belongs to the room
module.
"""

import logging
from typing import AsyncIterator, Optional

logger = logging.getLogger("poker_planning.storage")

ROOM_KEY_PREFIX = "room:"
DEFAULT_ROOM_TTL = 2 * 60 * 60  # 2 hours
TTL_WARNING_THRESHOLD = 60 * 60


class RoomStore:
    def __init__(self, redis_client, default_ttl: int = DEFAULT_ROOM_TTL, scan_count: int = 100):
        """
        Initialize room store.

        Args:
            redis_client: Async Redis client
            default_ttl: Room lifetime in seconds applied at creation
            scan_count: Hint for keys returned per SCAN round trip
        """
        self.redis = redis_client
        self.default_ttl = default_ttl
        self.scan_count = scan_count

    def _key(self, code: str) -> str:
        return f"{ROOM_KEY_PREFIX}{code}"

    async def create(self, code: str, payload: str, ttl: Optional[int] = None) -> None:
        """Write a new room record with a fresh expiry."""
        ttl = ttl or self.default_ttl
        await self.redis.setex(self._key(code), ttl, payload)
        logger.info(f"Room {code} created with TTL {ttl}s ({ttl / 3600:.1f}h)")

    async def get(self, code: str) -> Optional[str]:
        data = await self.redis.get(self._key(code))
        if not data:
            logger.debug(f"Room {code} not found in store")
            return None
        return data

    async def put(self, code: str, payload: str, preserve_ttl: bool = True) -> None:
        """
        Overwrite a room record.

        With ``preserve_ttl`` the remaining expiry is read back and reapplied, so
        activity never extends a room's life. A record without a positive TTL
        (missing or persistent) gets the default lifetime.
        """
        key = self._key(code)
        expiry = self.default_ttl

        if preserve_ttl:
            ttl = await self.redis.ttl(key)
            if ttl > 0:
                expiry = ttl
                if ttl < TTL_WARNING_THRESHOLD:
                    logger.warning(f"Room {code}: TTL is low ({ttl}s / {round(ttl / 60)}min)")

        await self.redis.setex(key, expiry, payload)

    async def delete(self, code: str) -> bool:
        deleted = await self.redis.delete(self._key(code))
        return deleted > 0

    async def exists(self, code: str) -> bool:
        return await self.redis.exists(self._key(code)) > 0

    async def ttl(self, code: str) -> int:
        """Remaining lifetime in seconds (-2 if missing, -1 if persistent)."""
        return await self.redis.ttl(self._key(code))

    async def scan(self) -> AsyncIterator[str]:
        """
        Lazily yield every room code.

        Uses cursor-based SCAN so a large keyspace never blocks the server the
        way a single KEYS call would. A code may be yielded more than once if
        the keyspace is rehashed mid-scan; callers must tolerate that.
        """
        async for key in self.redis.scan_iter(match=f"{ROOM_KEY_PREFIX}*", count=self.scan_count):
            raw = key.decode() if isinstance(key, bytes) else key
            yield raw[len(ROOM_KEY_PREFIX):]
