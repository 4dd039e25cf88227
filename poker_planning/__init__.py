"""
Poker Planning - Live Estimation Room Service

A system for running planning poker sessions: members join a shared room,
cast hidden votes, reveal them together, and reset for the next item.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- config: Environment-driven configuration
- storage: Redis connection and persistent room store
- room: Room aggregate and pure transitions
- session: Anonymous per-room session identity
- broadcast: In-process fan-out of room state to live subscribers
- reaper: Background eviction of stale members and empty rooms
- engine: Orchestration of the externally visible operations
- stats: Usage counters and vote summaries
- middleware: Request gate (rate limiting, body size, security headers)
- api: REST request/response schemas
"""

__version__ = "2.4.0"
