"""Sorted-set leaderboard with rank lookup, top-N and neighborhood queries."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from redikit.core.config import settings
from redikit.core.keys import as_str, prefix_key
from redikit.core.redis import get_redis_client


class SortOrder(str, Enum):
    """Which end of the score range holds rank 0."""
    HIGH_TO_LOW = "highToLow"  # points, kills, revenue
    LOW_TO_HIGH = "lowToHigh"  # race times, golf scores


@dataclass(frozen=True)
class LeaderboardEntry:
    member: str
    score: float
    rank: int  # 0-indexed


class Leaderboard:
    """A Redis sorted-set-backed leaderboard.

    Example:
        >>> lb = Leaderboard(redis, "weekly-scores")
        >>> await lb.upsert("alice", 2850)
        >>> await lb.increment("alice", 50)
        2900.0
        >>> await lb.rank("alice")
        LeaderboardEntry(member='alice', score=2900.0, rank=0)
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        name: str = "default",
        prefix: Optional[str] = None,
        sort_order: SortOrder = SortOrder.HIGH_TO_LOW,
    ) -> None:
        self._redis = redis_client if redis_client is not None else get_redis_client()
        self.key = prefix_key(prefix if prefix is not None else settings.leaderboard_prefix, name)
        self.sort_order = SortOrder(sort_order)
        self._desc = self.sort_order is SortOrder.HIGH_TO_LOW

    async def upsert(self, member: str, score: float) -> None:
        """Add a member with a score, or replace their existing score."""
        await self._redis.zadd(self.key, {member: score})

    async def increment(self, member: str, amount: float) -> float:
        """Increment a member's score by ``amount``. Returns the new score."""
        return float(await self._redis.zincrby(self.key, amount, member))

    def _queue_rank(self, pipe: Any, member: str) -> None:
        if self._desc:
            pipe.zrevrank(self.key, member)
        else:
            pipe.zrank(self.key, member)

    async def _rank_of(self, member: str) -> Optional[int]:
        if self._desc:
            return await self._redis.zrevrank(self.key, member)
        return await self._redis.zrank(self.key, member)

    async def _range(self, start: int, stop: int) -> list:
        return await self._redis.zrange(
            self.key, start, stop, desc=self._desc, withscores=True
        )

    async def rank(self, member: str) -> Optional[LeaderboardEntry]:
        """Get a member's rank and score, or None if they are not ranked."""
        pipe = self._redis.pipeline(transaction=False)
        self._queue_rank(pipe, member)
        pipe.zscore(self.key, member)
        rank, score = await pipe.execute()

        if rank is None or score is None:
            return None
        return LeaderboardEntry(member=member, score=float(score), rank=int(rank))

    async def top(self, count: int) -> List[LeaderboardEntry]:
        """Get the top ``count`` members."""
        if count <= 0:
            return []
        return self._entries(await self._range(0, count - 1), 0)

    async def around(self, member: str, count: int) -> List[LeaderboardEntry]:
        """Get up to ``count`` members on each side of ``member``, plus the member."""
        member_rank = await self._rank_of(member)
        if member_rank is None:
            return []

        start = max(0, member_rank - count)
        stop = member_rank + count
        return self._entries(await self._range(start, stop), start)

    async def remove(self, member: str) -> bool:
        """Remove a member. Returns True if the member existed."""
        return int(await self._redis.zrem(self.key, member)) == 1

    async def count(self) -> int:
        """Total number of members in the leaderboard."""
        return int(await self._redis.zcard(self.key))

    async def range(self, min_score: float, max_score: float) -> List[LeaderboardEntry]:
        """Get all members with scores in ``[min_score, max_score]``.

        Entries come back lowest score first regardless of sort order, each
        with its actual rank under the leaderboard's sort order.
        """
        raw = await self._redis.zrangebyscore(self.key, min_score, max_score, withscores=True)
        if not raw:
            return []

        pipe = self._redis.pipeline(transaction=False)
        for member, _ in raw:
            self._queue_rank(pipe, member)
        ranks = await pipe.execute()

        return [
            LeaderboardEntry(member=as_str(member), score=float(score), rank=int(rank))
            for (member, score), rank in zip(raw, ranks)
        ]

    @staticmethod
    def _entries(raw: list, start_rank: int) -> List[LeaderboardEntry]:
        return [
            LeaderboardEntry(member=as_str(member), score=float(score), rank=start_rank + i)
            for i, (member, score) in enumerate(raw)
        ]
