"""Tests for the sorted-set leaderboard."""

import pytest

from redikit.leaderboard import Leaderboard, LeaderboardEntry, SortOrder


@pytest.fixture
def board(redis_client):
    return Leaderboard(redis_client, "weekly-scores")


async def _seed(board: Leaderboard) -> None:
    for member, score in [("alice", 300), ("bob", 200), ("carol", 100), ("dave", 50)]:
        await board.upsert(member, score)


class TestLeaderboard:
    """Tests for the default high-to-low leaderboard."""

    @pytest.mark.asyncio
    async def test_key_is_namespaced(self, board, redis_client):
        await board.upsert("alice", 10)
        assert board.key == "lb:weekly-scores"
        assert await redis_client.zscore("lb:weekly-scores", "alice") == 10

    @pytest.mark.asyncio
    async def test_upsert_replaces_score(self, board):
        await board.upsert("alice", 10)
        await board.upsert("alice", 25)
        entry = await board.rank("alice")
        assert entry == LeaderboardEntry(member="alice", score=25.0, rank=0)

    @pytest.mark.asyncio
    async def test_increment(self, board):
        await board.upsert("alice", 2850)
        assert await board.increment("alice", 50) == 2900.0
        assert await board.increment("newcomer", 5) == 5.0

    @pytest.mark.asyncio
    async def test_rank_missing_member(self, board):
        assert await board.rank("ghost") is None

    @pytest.mark.asyncio
    async def test_top(self, board):
        await _seed(board)
        top = await board.top(3)
        assert [(e.member, e.score, e.rank) for e in top] == [
            ("alice", 300.0, 0),
            ("bob", 200.0, 1),
            ("carol", 100.0, 2),
        ]

    @pytest.mark.asyncio
    async def test_top_zero(self, board):
        await _seed(board)
        assert await board.top(0) == []

    @pytest.mark.asyncio
    async def test_around(self, board):
        await _seed(board)
        around = await board.around("bob", 1)
        assert [(e.member, e.rank) for e in around] == [("alice", 0), ("bob", 1), ("carol", 2)]

    @pytest.mark.asyncio
    async def test_around_clamps_at_top(self, board):
        await _seed(board)
        around = await board.around("alice", 2)
        assert [(e.member, e.rank) for e in around] == [("alice", 0), ("bob", 1), ("carol", 2)]

    @pytest.mark.asyncio
    async def test_around_missing_member(self, board):
        await _seed(board)
        assert await board.around("ghost", 2) == []

    @pytest.mark.asyncio
    async def test_remove_and_count(self, board):
        await _seed(board)
        assert await board.count() == 4
        assert await board.remove("bob") is True
        assert await board.remove("bob") is False
        assert await board.count() == 3

    @pytest.mark.asyncio
    async def test_range_reports_real_ranks(self, board):
        await _seed(board)
        entries = await board.range(60, 250)
        assert [(e.member, e.score, e.rank) for e in entries] == [
            ("carol", 100.0, 2),
            ("bob", 200.0, 1),
        ]

    @pytest.mark.asyncio
    async def test_range_empty(self, board):
        assert await board.range(0, 100) == []

    @pytest.mark.asyncio
    async def test_bytes_client(self, bytes_redis_client):
        board = Leaderboard(bytes_redis_client, "scores")
        await board.upsert("alice", 1)
        top = await board.top(1)
        assert top[0].member == "alice"


class TestLowToHigh:
    """Tests for leaderboards where the lowest score ranks first."""

    @pytest.fixture
    def board(self, redis_client):
        return Leaderboard(redis_client, "race-times", sort_order=SortOrder.LOW_TO_HIGH)

    @pytest.mark.asyncio
    async def test_top(self, board):
        await _seed(board)
        top = await board.top(2)
        assert [(e.member, e.rank) for e in top] == [("dave", 0), ("carol", 1)]

    @pytest.mark.asyncio
    async def test_rank(self, board):
        await _seed(board)
        entry = await board.rank("alice")
        assert entry.rank == 3

    @pytest.mark.asyncio
    async def test_range_reports_real_ranks(self, board):
        await _seed(board)
        entries = await board.range(60, 250)
        assert [(e.member, e.rank) for e in entries] == [("carol", 1), ("bob", 2)]

    def test_sort_order_from_string(self, redis_client):
        board = Leaderboard(redis_client, "x", sort_order="lowToHigh")
        assert board.sort_order is SortOrder.LOW_TO_HIGH
