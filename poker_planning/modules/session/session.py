import logging
import uuid
from typing import Optional

from poker_planning.modules.room import Member, NotAMember, Room, Unauthenticated

logger = logging.getLogger("poker_planning.session")


class SessionResolver:
    """
    Maps an anonymous session token to a member of a room.

    A token is the member id itself: joining a room stores the member under
    the caller's token, so resolution is a lookup in the loaded room.
    """

    @staticmethod
    def mint() -> str:
        """
        Create a new session token.

        Returns:
            Random 128-bit identifier in UUID form
        """
        return str(uuid.uuid4())

    def ensure_token(self, session_id: Optional[str]) -> str:
        """
        Require a token to be present.

        Raises:
            Unauthenticated: no token was supplied
        """
        if not session_id:
            raise Unauthenticated()
        return session_id

    def identify(self, room: Room, session_id: Optional[str]) -> Optional[Member]:
        """Return the caller's member entry, or None when anonymous or unknown."""
        if not session_id:
            return None
        return room.members.get(session_id)

    def resolve(self, room: Room, session_id: Optional[str]) -> Member:
        """
        Return the caller's member entry.

        Raises:
            NotAMember: no token, or the token is not a member of this room
        """
        member = self.identify(room, session_id)
        if member is None:
            logger.debug(f"Session rejected for room {room.code}: not a member")
            raise NotAMember()
        return member
