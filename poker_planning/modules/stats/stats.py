"""
Statistics for Poker Planning.

Counters are best effort: a store hiccup while counting never fails the user
action that triggered it.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable

from redis.exceptions import RedisError

from poker_planning.modules.room import HIDDEN_VOTE, Room

logger = logging.getLogger("poker_planning.stats")

STAT_NAMES = ("rooms", "participants", "votes")


class StatsModule:
    def __init__(self, redis_client, store):
        """
        Initialize stats module.

        Args:
            redis_client: Async Redis client holding the counters
            store: RoomStore scanned for live figures
        """
        self.redis = redis_client
        self.store = store

    def _key(self, stat_name: str) -> str:
        return f"stats:{stat_name}:total"

    async def increment(self, stat_name: str) -> None:
        """Bump a cumulative counter, swallowing store failures."""
        try:
            await self.redis.incr(self._key(stat_name))
        except RedisError as e:
            logger.warning(f"Failed to increment {stat_name} counter: {e}")

    async def get_stats(self) -> Dict[str, Dict[str, int]]:
        """
        Get cumulative counters and live figures.

        Returns:
            {"cumulative": {...}, "active": {...}} with rooms, participants and
            votes; all zeros if the store is unreachable
        """
        try:
            totals = [await self.redis.get(self._key(name)) for name in STAT_NAMES]

            active_rooms = 0
            active_participants = 0
            active_votes = 0
            async for code in self.store.scan():
                payload = await self.store.get(code)
                if payload is None:
                    continue
                room = Room.from_json(payload)
                active_rooms += 1
                active_participants += len(room.members)
                active_votes += sum(1 for m in room.members.values() if m.has_voted)

            return {
                "cumulative": {name: int(total or 0) for name, total in zip(STAT_NAMES, totals)},
                "active": {
                    "rooms": active_rooms,
                    "participants": active_participants,
                    "votes": active_votes,
                },
            }
        except RedisError as e:
            logger.error(f"Failed to fetch stats: {e}")
            zeros = {name: 0 for name in STAT_NAMES}
            return {"cumulative": dict(zeros), "active": dict(zeros)}


def summarize_votes(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Summarize the votes in a visible room state.

    Works on the redacted projection, so before reveal only the number of cast
    votes is known; average and distribution fill in once values are visible.
    """
    votes = [m["vote"] for m in state.get("members", []) if m.get("vote") is not None]
    revealed = [v for v in votes if v != HIDDEN_VOTE]
    numeric = [v for v in revealed if isinstance(v, int) and not isinstance(v, bool)]

    return {
        "voteCount": len(votes),
        "average": sum(numeric) / len(numeric) if numeric else None,
        "distribution": _distribution(revealed),
        "consensus": len(revealed) >= 2 and len(set(revealed)) == 1,
    }


def _distribution(values: Iterable[Any]) -> Dict[str, int]:
    # JSON object keys are strings; most common value first
    return {str(value): count for value, count in Counter(values).most_common()}
