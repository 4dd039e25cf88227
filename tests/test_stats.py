"""
Tests for usage counters and vote summaries.
"""

import pytest

from conftest import build_room, seed_room
from poker_planning.modules.stats import StatsModule, summarize_votes
from poker_planning.modules.storage import RoomStore


# =============================================================================
# Counters
# =============================================================================

class TestStatsModule:

    @pytest.mark.asyncio
    async def test_increment(self, stats, mock_redis):
        await stats.increment("rooms")
        await stats.increment("rooms")
        await stats.increment("votes")

        assert mock_redis._storage["stats:rooms:total"] == "2"
        assert mock_redis._storage["stats:votes:total"] == "1"

    @pytest.mark.asyncio
    async def test_increment_swallows_store_errors(self, failing_redis):
        stats = StatsModule(failing_redis, RoomStore(failing_redis))
        await stats.increment("rooms")
        failing_redis.incr.assert_awaited_once_with("stats:rooms:total")

    @pytest.mark.asyncio
    async def test_get_stats(self, stats, mock_redis):
        await stats.increment("rooms")
        await stats.increment("participants")
        await stats.increment("participants")
        await stats.increment("participants")
        await seed_room(
            mock_redis,
            build_room(members=[("m1", "Alice", 5, 0), ("m2", "Bob", None, 0)]),
        )
        await seed_room(mock_redis, build_room(code="XYZ789", members=[("m3", "Carol", "?", 0)]))

        result = await stats.get_stats()

        assert result == {
            "cumulative": {"rooms": 1, "participants": 3, "votes": 0},
            "active": {"rooms": 2, "participants": 3, "votes": 2},
        }

    @pytest.mark.asyncio
    async def test_get_stats_store_down(self, failing_redis):
        stats = StatsModule(failing_redis, RoomStore(failing_redis))

        result = await stats.get_stats()

        assert result["cumulative"] == {"rooms": 0, "participants": 0, "votes": 0}
        assert result["active"] == {"rooms": 0, "participants": 0, "votes": 0}


# =============================================================================
# Vote Summary
# =============================================================================

def _state(votes, show_results=True):
    return {
        "code": "ABC234",
        "members": [{"id": f"m{i}", "name": f"M{i}", "vote": v} for i, v in enumerate(votes)],
        "showResults": show_results,
    }


class TestSummarizeVotes:

    def test_revealed_numeric(self):
        summary = summarize_votes(_state([5, 8, None]))
        assert summary == {
            "voteCount": 2,
            "average": 6.5,
            "distribution": {"5": 1, "8": 1},
            "consensus": False,
        }

    def test_hidden_votes_only_counted(self):
        summary = summarize_votes(_state(["hidden", "hidden", None], show_results=False))
        assert summary == {
            "voteCount": 2,
            "average": None,
            "distribution": {},
            "consensus": False,
        }

    def test_special_votes_excluded_from_average(self):
        summary = summarize_votes(_state([3, "?", "☕", 3]))
        assert summary["voteCount"] == 4
        assert summary["average"] == 3
        assert summary["distribution"] == {"3": 2, "?": 1, "☕": 1}
        assert list(summary["distribution"])[0] == "3"

    def test_consensus(self):
        assert summarize_votes(_state([8, 8]))["consensus"] is True
        assert summarize_votes(_state([8]))["consensus"] is False
        assert summarize_votes(_state([]))["average"] is None
