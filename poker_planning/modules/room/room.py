"""
Room aggregate for Poker Planning.

A Room is a plain value: every transition below takes a Room and returns a new
one, leaving the input untouched. Nothing in this module performs I/O, so the
same functions serve request handlers, the reaper and tests alike.

Timestamps are integer milliseconds since the epoch, matching the persisted
record layout.
"""

import json
import re
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import InvalidCode, InvalidName, InvalidVote, NameConflict, NotAMember, TargetNotFound

# Room codes: 6 characters from an alphabet without 0, O, 1, I, L
ROOM_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
_ROOM_CODE_RE = re.compile(rf"^[{ROOM_CODE_ALPHABET}]{{{ROOM_CODE_LENGTH}}}$")

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 50

# Marker shown in place of a cast vote until the room is revealed
HIDDEN_VOTE = "hidden"


class SpecialVote(str, Enum):
    """Non-numeric cards in the deck."""

    UNSURE = "?"
    COFFEE = "☕"


NUMERIC_VOTES = (1, 2, 3, 5, 8, 13, 21, 34, 55)
VOTE_VALUES = NUMERIC_VOTES + tuple(v.value for v in SpecialVote)

VoteValue = Union[int, str, None]


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


# Validation


def is_valid_room_code(code: Any) -> bool:
    return isinstance(code, str) and bool(_ROOM_CODE_RE.match(code))


def is_valid_name(name: Any) -> bool:
    return isinstance(name, str) and NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH


def is_valid_vote(value: Any) -> bool:
    """
    Check a vote against the closed deck.

    ``None`` (no vote) is valid. Booleans and floats are rejected even when
    they compare equal to a card, so only the exact card values pass.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value in NUMERIC_VOTES
    if isinstance(value, str):
        return value in (v.value for v in SpecialVote)
    return False


def validate_room_code(code: Any) -> str:
    if not is_valid_room_code(code):
        raise InvalidCode()
    return code


def validate_name(name: Any) -> str:
    if not is_valid_name(name):
        raise InvalidName()
    return name


def validate_vote(value: Any) -> VoteValue:
    if not is_valid_vote(value):
        raise InvalidVote()
    return value


# Data model


@dataclass(frozen=True)
class Member:
    """A participant within one room."""

    id: str
    name: str
    vote: VoteValue = None
    last_activity: int = 0

    @property
    def has_voted(self) -> bool:
        return self.vote is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "vote": self.vote,
            "lastActivity": self.last_activity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Member":
        return cls(
            id=data["id"],
            name=data["name"],
            vote=data.get("vote"),
            last_activity=int(data.get("lastActivity", 0)),
        )


@dataclass(frozen=True)
class Room:
    """
    A voting session.

    ``members`` maps member id to Member. Transitions always build a fresh
    dict, so a Room handed out by one caller is never mutated by another.
    """

    code: str
    members: Dict[str, Member] = field(default_factory=dict)
    show_results: bool = False
    created_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Persisted layout: members as an explicit list of [id, member] pairs."""
        return {
            "code": self.code,
            "members": [[member_id, member.to_dict()] for member_id, member in self.members.items()],
            "showResults": self.show_results,
            "createdAt": self.created_at,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Room":
        return cls(
            code=data["code"],
            members={member_id: Member.from_dict(member) for member_id, member in data.get("members", [])},
            show_results=bool(data.get("showResults", False)),
            created_at=int(data.get("createdAt", 0)),
        )

    @classmethod
    def from_json(cls, payload: str) -> "Room":
        return cls.from_dict(json.loads(payload))

    def find_member_by_name(self, name: str) -> Optional[Member]:
        """Case-insensitive name lookup."""
        wanted = name.casefold()
        for member in self.members.values():
            if member.name.casefold() == wanted:
                return member
        return None


# Transitions


def create_room(code: str, now: Optional[int] = None) -> Room:
    return Room(code=code, members={}, show_results=False, created_at=now if now is not None else now_ms())


def add_member(room: Room, member_id: str, name: str, now: Optional[int] = None) -> Room:
    """
    Add a member with no vote. An existing entry under the same id is replaced.

    Raises:
        NameConflict: any member, the caller included, already uses this
            name, ignoring case
    """
    if room.find_member_by_name(name) is not None:
        raise NameConflict()

    members = dict(room.members)
    members[member_id] = Member(
        id=member_id,
        name=name,
        vote=None,
        last_activity=now if now is not None else now_ms(),
    )
    return replace(room, members=members)


def record_vote(room: Room, member_id: str, value: VoteValue, now: Optional[int] = None) -> Room:
    """
    Set a member's vote and refresh their activity.

    Raises:
        NotAMember: member_id is not in the room
    """
    member = room.members.get(member_id)
    if member is None:
        raise NotAMember()

    members = dict(room.members)
    members[member_id] = replace(
        member, vote=value, last_activity=now if now is not None else now_ms()
    )
    return replace(room, members=members)


def touch_member(room: Room, member_id: str, now: Optional[int] = None) -> Room:
    """Refresh a member's activity timestamp without changing anything else."""
    member = room.members.get(member_id)
    if member is None:
        raise NotAMember()

    members = dict(room.members)
    members[member_id] = replace(member, last_activity=now if now is not None else now_ms())
    return replace(room, members=members)


def reveal(room: Room) -> Room:
    # Revealing an already revealed room is a no-op
    if room.show_results:
        return room
    return replace(room, show_results=True)


def reset(room: Room) -> Room:
    """Hide results and clear every vote. Membership and activity are kept."""
    members = {member_id: replace(member, vote=None) for member_id, member in room.members.items()}
    return replace(room, members=members, show_results=False)


def remove_member(room: Room, target_id: str) -> Room:
    """
    Raises:
        TargetNotFound: target_id is not in the room
    """
    if target_id not in room.members:
        raise TargetNotFound()

    members = dict(room.members)
    del members[target_id]
    return replace(room, members=members)


def evict_inactive(room: Room, inactivity_ms: int, now: Optional[int] = None) -> Tuple[Room, List[Member]]:
    """
    Drop members idle for at least ``inactivity_ms``.

    Returns:
        The updated room and the list of evicted members (empty if unchanged)
    """
    now = now if now is not None else now_ms()
    evicted = [m for m in room.members.values() if now - m.last_activity >= inactivity_ms]
    if not evicted:
        return room, []

    evicted_ids = {m.id for m in evicted}
    members = {member_id: m for member_id, m in room.members.items() if member_id not in evicted_ids}
    return replace(room, members=members), evicted


def derive_visible_state(room: Room) -> Dict[str, Any]:
    """
    Project a Room into the state clients are allowed to see.

    This is the only place vote values leave the server. Before reveal a cast
    vote is shown as the ``"hidden"`` marker and a missing vote as ``None``.
    """
    members = []
    for member in room.members.values():
        if room.show_results:
            vote = member.vote
        else:
            vote = HIDDEN_VOTE if member.has_voted else None
        members.append({"id": member.id, "name": member.name, "vote": vote})

    return {
        "code": room.code,
        "members": members,
        "showResults": room.show_results,
    }
