"""
Session Module - Black Box Interface

Purpose: Anonymous per-room session identity
Interface: SessionResolver.mint(), ensure_token(), identify(), resolve()
Hidden: Token format and lookup rules

Replaceable with any identity scheme that yields an opaque member id.
"""

from .session import SessionResolver

__all__ = ["SessionResolver"]
