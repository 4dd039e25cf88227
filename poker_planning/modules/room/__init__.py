"""
Room Module - Black Box Interface

Purpose: Room data model and its state transitions
Interface: create_room(), add_member(), record_vote(), reveal(), reset(),
           remove_member(), evict_inactive(), derive_visible_state()
Hidden: Serialization layout, validation rules, vote deck

Pure functions only - no storage, no clock other than an optional ``now``.
"""

from .errors import (
    InvalidCode,
    InvalidName,
    InvalidVote,
    NameConflict,
    NotAMember,
    RoomError,
    RoomNotFound,
    TargetNotFound,
    Unauthenticated,
)
from .room import (
    HIDDEN_VOTE,
    NUMERIC_VOTES,
    ROOM_CODE_ALPHABET,
    ROOM_CODE_LENGTH,
    VOTE_VALUES,
    Member,
    Room,
    SpecialVote,
    add_member,
    create_room,
    derive_visible_state,
    evict_inactive,
    is_valid_name,
    is_valid_room_code,
    is_valid_vote,
    now_ms,
    record_vote,
    remove_member,
    reset,
    reveal,
    touch_member,
    validate_name,
    validate_room_code,
    validate_vote,
)

__all__ = [
    "HIDDEN_VOTE",
    "NUMERIC_VOTES",
    "ROOM_CODE_ALPHABET",
    "ROOM_CODE_LENGTH",
    "VOTE_VALUES",
    "InvalidCode",
    "InvalidName",
    "InvalidVote",
    "Member",
    "NameConflict",
    "NotAMember",
    "Room",
    "RoomError",
    "RoomNotFound",
    "SpecialVote",
    "TargetNotFound",
    "Unauthenticated",
    "add_member",
    "create_room",
    "derive_visible_state",
    "evict_inactive",
    "is_valid_name",
    "is_valid_room_code",
    "is_valid_vote",
    "now_ms",
    "record_vote",
    "remove_member",
    "reset",
    "reveal",
    "touch_member",
    "validate_name",
    "validate_room_code",
    "validate_vote",
]
