"""
Stats Module - Black Box Interface

Purpose: Usage counters and vote summaries
Interface: increment(), get_stats(), summarize_votes()
Hidden: Counter keys, live-figure scanning

Store failures degrade to zeros instead of errors.
"""

from .stats import STAT_NAMES, StatsModule, summarize_votes

__all__ = ["StatsModule", "summarize_votes", "STAT_NAMES"]
