"""
Session engine - the externally visible room operations.

Every mutating operation has the same shape: validate input, load the room,
apply a pure transition, persist it (keeping the room's remaining TTL) and
publish the new visible state.

Known limitation: there is no version check between load and persist. Two
concurrent writers on the same room can both read the same record and the
last one to persist wins; the other update is lost. For votes, reveals and
resets this is accepted.
"""

import asyncio
import logging
import secrets
from typing import Any, AsyncIterator, Dict, Optional, Tuple

from redis.exceptions import RedisError

from poker_planning.modules.broadcast import LatestStateSink
from poker_planning.modules.room import (
    ROOM_CODE_ALPHABET,
    ROOM_CODE_LENGTH,
    Member,
    Room,
    RoomNotFound,
    add_member,
    create_room,
    derive_visible_state,
    is_valid_room_code,
    record_vote,
    remove_member,
    reset,
    reveal,
    touch_member,
    validate_name,
    validate_room_code,
    validate_vote,
)
from poker_planning.modules.session import SessionResolver

logger = logging.getLogger("poker_planning.engine")

DEFAULT_KEEPALIVE_INTERVAL = 30
MAX_CODE_ATTEMPTS = 20


class SessionEngine:
    def __init__(
        self,
        store,
        hub,
        stats=None,
        resolver: Optional[SessionResolver] = None,
        room_ttl: Optional[int] = None,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
    ):
        """
        Initialize session engine.

        Args:
            store: RoomStore holding room records
            hub: BroadcastHub used to notify subscribers
            stats: Optional StatsModule for usage counters
            resolver: SessionResolver (default instance if omitted)
            room_ttl: Lifetime of new rooms in seconds (store default if omitted)
            keepalive_interval: Seconds between keep-alive pings on event streams
        """
        self.store = store
        self.hub = hub
        self.stats = stats
        self.resolver = resolver or SessionResolver()
        self.room_ttl = room_ttl
        self.keepalive_interval = keepalive_interval

    # Room codes

    @staticmethod
    def random_room_code() -> str:
        return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))

    async def generate_room_code(self) -> str:
        """
        Draw a code that is not in use.

        This is an optimistic check, not a reservation: another process could
        claim the same code between the check and the write. With ~887M codes
        that window is accepted.
        """
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self.random_room_code()
            if not await self.store.exists(code):
                return code
            logger.debug(f"Room code {code} already in use, drawing again")
        raise RuntimeError(f"No free room code after {MAX_CODE_ATTEMPTS} attempts")

    # Operations

    async def create_room(self) -> Room:
        code = await self.generate_room_code()
        room = create_room(code)
        await self.store.create(code, room.to_json(), ttl=self.room_ttl)
        await self._count("rooms")
        return room

    async def join(self, code: str, name: str, session_id: Optional[str] = None) -> Member:
        """
        Join a room under a display name.

        A session token is minted when the caller has none; the returned
        member's id is the token to hand back to the client.

        Raises:
            InvalidCode, InvalidName, RoomNotFound, NameConflict
        """
        validate_room_code(code)
        validate_name(name)
        room = await self._load(code)

        member_id = session_id or self.resolver.mint()
        room = add_member(room, member_id, name)

        await self._commit(room)
        await self._count("participants")
        logger.info(f"Member {name!r} joined room {code} ({len(room.members)} member(s))")
        return room.members[member_id]

    async def vote(self, code: str, session_id: Optional[str], value: Any) -> None:
        """
        Raises:
            InvalidVote, RoomNotFound, Unauthenticated, NotAMember
        """
        validate_vote(value)
        room = await self._load(code)
        self.resolver.ensure_token(session_id)
        member = self.resolver.resolve(room, session_id)

        room = record_vote(room, member.id, value)
        await self._commit(room)
        if value is not None:
            await self._count("votes")

    async def reveal(self, code: str, session_id: Optional[str]) -> None:
        """
        Raises:
            RoomNotFound, NotAMember
        """
        room = await self._load(code)
        self.resolver.resolve(room, session_id)
        await self._commit(reveal(room))

    async def reset(self, code: str, session_id: Optional[str]) -> None:
        """
        Raises:
            RoomNotFound, NotAMember
        """
        room = await self._load(code)
        self.resolver.resolve(room, session_id)
        await self._commit(reset(room))

    async def remove_member(self, code: str, session_id: Optional[str], target_id: str) -> None:
        """
        Any member may remove any member, including themselves.

        Raises:
            RoomNotFound, NotAMember, TargetNotFound
        """
        room = await self._load(code)
        caller = self.resolver.resolve(room, session_id)
        room = remove_member(room, target_id)

        await self._commit(room)
        logger.info(f"Member {target_id} removed from room {code} by {caller.id}")

    async def room_info(self, code: str, session_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Raises:
            RoomNotFound
        """
        room = await self._load(code)
        member = self.resolver.identify(room, session_id)
        return {
            "code": room.code,
            "memberCount": len(room.members),
            "currentMember": {"id": member.id, "name": member.name} if member else None,
        }

    async def visible_state(self, code: str) -> Dict[str, Any]:
        return derive_visible_state(await self._load(code))

    async def touch(self, code: str, session_id: Optional[str] = None) -> bool:
        """
        Refresh the caller's activity timestamp, if they are a member.

        Store failures are logged and ignored.

        Returns:
            False only when the room no longer exists
        """
        try:
            payload = await self.store.get(code)
            if payload is None:
                return False
            if session_id:
                room = Room.from_json(payload)
                if session_id in room.members:
                    room = touch_member(room, session_id)
                    await self.store.put(code, room.to_json(), preserve_ttl=True)
            return True
        except RedisError as e:
            logger.warning(f"Failed to refresh activity in room {code}: {e}")
            return True

    async def open_stream(self, code: str, session_id: Optional[str] = None) -> "RoomStream":
        """
        Check a room can be subscribed to and prepare its event stream.

        Raises:
            RoomNotFound
        """
        await self._load(code)
        await self.touch(code, session_id)
        return RoomStream(self, code, session_id)

    # Internals

    async def _load(self, code: str) -> Room:
        # Malformed codes cannot exist in the store; present them as missing
        if not is_valid_room_code(code):
            raise RoomNotFound()
        payload = await self.store.get(code)
        if payload is None:
            raise RoomNotFound()
        return Room.from_json(payload)

    async def _commit(self, room: Room) -> None:
        await self.store.put(room.code, room.to_json(), preserve_ttl=True)
        try:
            await self.hub.publish(room.code)
        except RedisError as e:
            # The write already landed; subscribers catch up on the next publish
            logger.warning(f"Broadcast failed for room {room.code}: {e}")

    async def _count(self, stat_name: str) -> None:
        if self.stats is not None:
            await self.stats.increment(stat_name)


class RoomStream:
    """
    Live event stream for one subscriber.

    Yields ``("update", state)`` whenever the room changes and ``("ping", None)``
    once per keep-alive interval, however busy the room is. Each ping also
    refreshes the subscriber's activity. The stream ends when the room
    disappears, and its hub registration is always removed when iteration
    stops for any reason, cancellation included.
    """

    def __init__(self, engine: SessionEngine, code: str, session_id: Optional[str] = None):
        self.engine = engine
        self.code = code
        self.session_id = session_id

    async def events(self) -> AsyncIterator[Tuple[str, Optional[Dict[str, Any]]]]:
        sink = LatestStateSink()
        handle = self.engine.hub.subscribe(self.code, sink)
        try:
            # Read after subscribing so no change can slip in between
            try:
                state = await self.engine.visible_state(self.code)
            except RoomNotFound:
                return
            yield "update", state

            # Pings run on a fixed schedule; updates never push the deadline back
            loop = asyncio.get_running_loop()
            deadline = loop.time() + self.engine.keepalive_interval
            while True:
                remaining = deadline - loop.time()
                if remaining > 0:
                    state = await sink.next(remaining)
                    if state is not None:
                        yield "update", state
                        continue

                deadline = loop.time() + self.engine.keepalive_interval
                yield "ping", None
                if not await self.engine.touch(self.code, self.session_id):
                    logger.info(f"Room {self.code} is gone, closing stream")
                    return
        finally:
            self.engine.hub.unsubscribe(handle)
