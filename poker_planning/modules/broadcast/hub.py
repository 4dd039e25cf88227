"""
Broadcast hub for live room state.

Subscribers are held in process memory only and are rebuilt as clients
reconnect. Publishing always re-reads the room from the store, so every
process sharing the store pushes the latest persisted state rather than
whatever it last wrote itself.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from poker_planning.modules.room import Room, derive_visible_state

logger = logging.getLogger("poker_planning.broadcast")

Sink = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by subscribe(), used to unsubscribe."""

    code: str
    id: int


class BroadcastHub:
    def __init__(self, store):
        """
        Initialize broadcast hub.

        Args:
            store: RoomStore the hub reads current room state from
        """
        self.store = store
        self._subscribers: Dict[str, Dict[int, Sink]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, code: str, sink: Sink) -> Subscription:
        handle = Subscription(code=code, id=next(self._ids))
        self._subscribers.setdefault(code, {})[handle.id] = sink
        logger.debug(f"Subscriber {handle.id} added to room {code} ({self.subscriber_count(code)} total)")
        return handle

    def unsubscribe(self, handle: Subscription) -> None:
        """Remove a subscriber. Safe to call more than once."""
        sinks = self._subscribers.get(handle.code)
        if not sinks:
            return
        if sinks.pop(handle.id, None) is not None:
            logger.debug(f"Subscriber {handle.id} removed from room {handle.code}")
        if not sinks:
            del self._subscribers[handle.code]

    def subscriber_count(self, code: str) -> int:
        return len(self._subscribers.get(code, {}))

    async def publish(self, code: str) -> int:
        """
        Push the latest visible state of a room to every subscriber.

        Returns:
            Number of sinks that received the state
        """
        sinks = self._subscribers.get(code)
        if not sinks:
            return 0

        payload = await self.store.get(code)
        if payload is None:
            logger.debug(f"Publish skipped for room {code}: room no longer exists")
            return 0

        state = derive_visible_state(Room.from_json(payload))

        # Snapshot so subscribers may come and go while we await sinks
        delivered = 0
        for sub_id, sink in list(sinks.items()):
            try:
                await sink(state)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to deliver update to subscriber {sub_id} in room {code}: {e}")

        logger.debug(f"Published room {code} state to {delivered} subscriber(s)")
        return delivered


class LatestStateSink:
    """
    Sink that keeps only the newest state until the reader collects it.

    Intermediate states published between two reads are coalesced; the reader
    always sees the most recent one.
    """

    def __init__(self):
        self._state: Optional[Dict[str, Any]] = None
        self._ready = asyncio.Event()

    async def __call__(self, state: Dict[str, Any]) -> None:
        self._state = state
        self._ready.set()

    async def next(self, timeout: float) -> Optional[Dict[str, Any]]:
        """
        Wait for the next state.

        Returns:
            The newest state, or None if ``timeout`` elapsed first
        """
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            return None

        self._ready.clear()
        state, self._state = self._state, None
        return state
