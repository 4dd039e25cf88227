"""
Broadcast Module - Black Box Interface

Purpose: Fan out room state changes to live subscribers
Interface: subscribe(), unsubscribe(), publish()
Hidden: Subscriber registry, delivery isolation, coalescing

Transport agnostic: a sink is any async callable taking the visible room
state, so SSE, WebSocket or polling front-ends plug in without touching room
logic.
"""

from .hub import BroadcastHub, LatestStateSink, Sink, Subscription

__all__ = ["BroadcastHub", "LatestStateSink", "Sink", "Subscription"]
