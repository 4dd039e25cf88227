"""
Poker Planning API data models.

These models define the JSON bodies exchanged over the REST API. Field names
are camelCase on the wire to match the room state pushed over the event
stream.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Request Models (API Input)


class JoinRoomRequest(BaseModel):
    """Request to join a room. Length is checked by the engine."""

    name: str = Field(..., description="Member name (unique within room)", examples=["Alice"])


class VoteRequest(BaseModel):
    """Request to cast, change or clear a vote."""

    # Strict so "5" or 5.0 never pass as the card 5
    model_config = ConfigDict(strict=True)

    value: Union[int, str, None] = Field(
        ...,
        description="Fibonacci number, '?' for unsure, '☕' for break, or null to clear",
        examples=[5],
    )


# Response Models (API Output)


class ErrorResponse(BaseModel):
    error: str = Field(..., examples=["Room not found"])
    kind: Optional[str] = Field(None, examples=["RoomNotFound"])


class SuccessResponse(BaseModel):
    success: bool = True


class CreateRoomResponse(BaseModel):
    code: str = Field(..., description="6-character room code", examples=["ABC234"])


class JoinRoomResponse(BaseModel):
    success: bool = True
    memberId: str
    name: str


class MemberInfo(BaseModel):
    id: str
    name: str


class RoomInfoResponse(BaseModel):
    code: str
    memberCount: int
    currentMember: Optional[MemberInfo] = Field(
        None, description="The calling member, if the session belongs to this room"
    )


class VisibleMember(BaseModel):
    id: str
    name: str
    vote: Union[int, str, None] = Field(None, description="Card value after reveal, 'hidden' before")


class RoomState(BaseModel):
    """Room state as pushed on the event stream."""

    code: str
    members: List[VisibleMember]
    showResults: bool


class VoteSummaryResponse(BaseModel):
    voteCount: int
    average: Optional[float]
    distribution: Dict[str, int]
    consensus: bool


class StatsFigures(BaseModel):
    rooms: int
    participants: int
    votes: int


class StatsResponse(BaseModel):
    cumulative: StatsFigures
    active: StatsFigures


class HealthResponse(BaseModel):
    status: str = "ok"
