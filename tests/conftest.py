"""
Shared pytest fixtures for Poker Planning tests.

This module provides common fixtures including:
- An in-memory Redis double that reads back what it writes, with expiries
- A Redis double whose every call fails, for degraded-store paths
- Wired store, hub, stats and engine instances built on top of them
"""

import fnmatch
import os
import sys
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from poker_planning.modules.broadcast import BroadcastHub
from poker_planning.modules.engine import SessionEngine
from poker_planning.modules.room import Member, Room
from poker_planning.modules.stats import StatsModule
from poker_planning.modules.storage import RoomStore

# A code drawn from the room code alphabet
ROOM_CODE = "ABC234"


# =============================================================================
# Redis Mocks
# =============================================================================

def make_memory_redis():
    """
    Redis mock with in-memory data and expiry bookkeeping.

    Expiries are recorded, not enforced: ``ttl`` reports what was last set so
    tests can assert TTL preservation without waiting on a clock.
    """
    storage = {}
    ttls = {}

    redis = AsyncMock()

    async def mock_set(key, value, *args, **kwargs):
        storage[key] = value
        ttls.pop(key, None)
        return True

    async def mock_setex(key, ttl, value):
        storage[key] = value
        ttls[key] = int(ttl)
        return True

    async def mock_get(key):
        return storage.get(key)

    async def mock_ttl(key):
        if key not in storage:
            return -2
        return ttls.get(key, -1)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if key in storage:
                del storage[key]
                ttls.pop(key, None)
                count += 1
        return count

    async def mock_exists(*keys):
        return sum(1 for k in keys if k in storage)

    async def mock_incr(key):
        storage[key] = str(int(storage.get(key, 0)) + 1)
        return int(storage[key])

    async def mock_pexpire(key, ms):
        if key not in storage:
            return False
        ttls[key] = max(1, ms // 1000)
        return True

    async def mock_scan_iter(match=None, count=None):
        for key in list(storage.keys()):
            if match is None or fnmatch.fnmatch(key, match):
                yield key

    async def mock_ping():
        return True

    redis.set = mock_set
    redis.setex = mock_setex
    redis.get = mock_get
    redis.ttl = mock_ttl
    redis.delete = mock_delete
    redis.exists = mock_exists
    redis.incr = mock_incr
    redis.pexpire = mock_pexpire
    redis.scan_iter = mock_scan_iter
    redis.ping = mock_ping
    redis._storage = storage  # Expose for test assertions
    redis._ttls = ttls
    return redis


def make_failing_redis():
    """Redis mock whose every command raises a connection error."""
    redis = AsyncMock()
    error = RedisConnectionError("Connection refused")
    for name in ("get", "set", "setex", "ttl", "delete", "exists", "incr", "pexpire", "ping"):
        getattr(redis, name).side_effect = error

    def mock_scan_iter(match=None, count=None):
        raise error

    redis.scan_iter = mock_scan_iter
    return redis


@pytest.fixture
def mock_redis():
    """In-memory Redis mock."""
    return make_memory_redis()


@pytest.fixture
def failing_redis():
    """Redis mock that is unreachable."""
    return make_failing_redis()


# =============================================================================
# Wired Modules
# =============================================================================

@pytest.fixture
def store(mock_redis):
    return RoomStore(mock_redis, default_ttl=7200)


@pytest.fixture
def hub(store):
    return BroadcastHub(store)


@pytest.fixture
def stats(mock_redis, store):
    return StatsModule(mock_redis, store)


@pytest.fixture
def engine(store, hub, stats):
    """Engine with a short keep-alive so stream tests stay fast."""
    return SessionEngine(store, hub, stats=stats, room_ttl=7200, keepalive_interval=0.05)


async def seed_room(mock_redis, room: Room, ttl: int = 7200) -> None:
    """Write a room record straight into the Redis mock."""
    await mock_redis.setex(f"room:{room.code}", ttl, room.to_json())


def build_room(code: str = ROOM_CODE, created_at: int = 0, members=(), show_results: bool = False) -> Room:
    """Build a Room from (id, name, vote, last_activity) tuples."""
    return Room(
        code=code,
        members={
            member_id: Member(id=member_id, name=name, vote=vote, last_activity=last_activity)
            for member_id, name, vote, last_activity in members
        },
        show_results=show_results,
        created_at=created_at,
    )


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
