"""
Engine Module - Black Box Interface

Purpose: Orchestrate room operations end to end
Interface: create_room(), join(), vote(), reveal(), reset(), remove_member(),
           room_info(), open_stream()
Hidden: Load/transition/persist/publish sequencing, room code generation

The engine only orchestrates - room rules live in the room module, storage in
the storage module, fan-out in the broadcast module.
"""

from .engine import RoomStream, SessionEngine

__all__ = ["SessionEngine", "RoomStream"]
