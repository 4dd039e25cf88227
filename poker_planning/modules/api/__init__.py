"""
API Module - Black Box Interface

Purpose: HTTP request and response contracts
Interface: Pydantic models for every REST endpoint
Hidden: Serialization details

The API only orchestrates - it contains no business logic.
All logic is delegated to the engine.
"""

from .models import (
    CreateRoomResponse,
    ErrorResponse,
    HealthResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    MemberInfo,
    RoomInfoResponse,
    RoomState,
    StatsResponse,
    SuccessResponse,
    VisibleMember,
    VoteRequest,
    VoteSummaryResponse,
)

__all__ = [
    "CreateRoomResponse",
    "ErrorResponse",
    "HealthResponse",
    "JoinRoomRequest",
    "JoinRoomResponse",
    "MemberInfo",
    "RoomInfoResponse",
    "RoomState",
    "StatsResponse",
    "SuccessResponse",
    "VisibleMember",
    "VoteRequest",
    "VoteSummaryResponse",
]
