"""
Room error taxonomy.

Input validation errors are raised before the store is touched. State errors
are raised once the room record has been loaded. Both carry a stable ``kind``
that clients can branch on, and the HTTP status the API answers with.
"""


class RoomError(Exception):
    """Base class for all errors surfaced to room callers."""

    kind = "RoomError"
    status_code = 400
    default_message = "Room operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


# Input validation errors


class InvalidCode(RoomError):
    kind = "InvalidCode"
    status_code = 400
    default_message = "Invalid room code"


class InvalidName(RoomError):
    kind = "InvalidName"
    status_code = 400
    default_message = "Name must be between 1 and 50 characters"


class InvalidVote(RoomError):
    kind = "InvalidVote"
    status_code = 400
    default_message = "Invalid vote value"


# State errors


class RoomNotFound(RoomError):
    kind = "RoomNotFound"
    status_code = 404
    default_message = "Room not found"


class Unauthenticated(RoomError):
    kind = "Unauthenticated"
    status_code = 401
    default_message = "Not authenticated"


class NotAMember(RoomError):
    kind = "NotAMember"
    status_code = 403
    default_message = "Not a member of this room"


class NameConflict(RoomError):
    kind = "NameConflict"
    status_code = 409
    default_message = "Name already taken in this room"


class TargetNotFound(RoomError):
    kind = "TargetNotFound"
    status_code = 404
    default_message = "Member not found"
