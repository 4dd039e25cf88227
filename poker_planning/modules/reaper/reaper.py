"""
Reaper for abandoned rooms and stale members.

Runs on its own timer, independent of request flow. Each sweep walks every
room with the store's cursor scan, evicts members idle past the inactivity
threshold, deletes rooms that are empty and older than the grace period, and
publishes the new state of rooms it changed but kept.

The grace period protects a room created moments before its first join from
being deleted while still empty.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from poker_planning.modules.room import Room, evict_inactive, now_ms

logger = logging.getLogger("poker_planning.reaper")

DEFAULT_INTERVAL = 60
DEFAULT_INACTIVITY_TIMEOUT = 5 * 60
DEFAULT_GRACE_PERIOD = 5 * 60


@dataclass
class SweepReport:
    """Outcome of one reaper cycle."""

    rooms_scanned: int = 0
    members_removed: int = 0
    rooms_updated: int = 0
    rooms_deleted: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Reaper:
    def __init__(
        self,
        store,
        hub,
        inactivity_timeout: int = DEFAULT_INACTIVITY_TIMEOUT,
        grace_period: int = DEFAULT_GRACE_PERIOD,
        interval: float = DEFAULT_INTERVAL,
    ):
        """
        Initialize reaper.

        Args:
            store: RoomStore to sweep
            hub: BroadcastHub notified when a kept room changes
            inactivity_timeout: Seconds without activity before a member is evicted
            grace_period: Minimum room age in seconds before an empty room is deleted
            interval: Seconds between sweeps
        """
        self.store = store
        self.hub = hub
        self.inactivity_timeout = inactivity_timeout
        self.grace_period = grace_period
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    async def sweep(self, now: Optional[int] = None) -> SweepReport:
        """
        Run one cleanup cycle over every room.

        A failure on one room is logged and counted; the sweep carries on with
        the rest.
        """
        now = now if now is not None else now_ms()
        report = SweepReport()

        async for code in self.store.scan():
            report.rooms_scanned += 1
            try:
                await self._reap_room(code, now, report)
            except Exception as e:
                report.errors += 1
                logger.error(f"Cleanup failed for room {code}, skipping: {e}", exc_info=True)

        logger.info(
            f"Cleanup cycle done: scanned={report.rooms_scanned} "
            f"members_removed={report.members_removed} updated={report.rooms_updated} "
            f"deleted={report.rooms_deleted} errors={report.errors}"
        )
        return report

    async def _reap_room(self, code: str, now: int, report: SweepReport) -> None:
        payload = await self.store.get(code)
        if payload is None:
            # Expired between scan and read
            return

        room = Room.from_json(payload)
        room, evicted = evict_inactive(room, self.inactivity_timeout * 1000, now)

        if evicted:
            report.members_removed += len(evicted)
            logger.info(
                f"Room {code}: removed {len(evicted)} inactive member(s) "
                f"{[m.name for m in evicted]}, {len(room.members)} remaining"
            )

        room_age = now - room.created_at
        if not room.members and room_age >= self.grace_period * 1000:
            await self.store.delete(code)
            report.rooms_deleted += 1
            logger.info(
                f"Room {code}: deleted empty room past grace period "
                f"(age {round(room_age / 1000)}s, grace {self.grace_period}s)"
            )
            return

        if not evicted:
            return

        if not room.members:
            logger.info(f"Room {code}: empty but within grace period, preserving room")

        await self.store.put(code, room.to_json(), preserve_ttl=True)
        report.rooms_updated += 1
        await self.hub.publish(code)

    async def run_forever(self) -> None:
        """Sweep every ``interval`` seconds until cancelled."""
        logger.info(
            f"Reaper started (interval={self.interval}s, inactivity={self.inactivity_timeout}s, "
            f"grace={self.grace_period}s)"
        )
        while True:
            try:
                await self.sweep()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Store unreachable for the whole scan; try again next cycle
                logger.error(f"Cleanup cycle failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="room-reaper")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reaper stopped")
