"""
Reaper Module - Black Box Interface

Purpose: Reclaim abandoned rooms and stale members
Interface: sweep(), start(), stop()
Hidden: Scheduling, per-room failure isolation, eviction policy

Works directly against the store and the broadcast hub; never on the request
path.
"""

from .reaper import Reaper, SweepReport

__all__ = ["Reaper", "SweepReport"]
