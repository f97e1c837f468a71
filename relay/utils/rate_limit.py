import time
from collections import defaultdict, deque
from typing import Callable, Protocol
from uuid import uuid4

from redis.asyncio import Redis

from ..logger import get_logger


logger = get_logger(__name__)


class RateLimiter(Protocol):
    async def hit(self, identifier: str) -> float | None:
        """Count one attempt for `identifier` and return None, or the seconds to wait if the limit is reached."""


class MemoryRateLimiter:
    """Sliding window counter kept in process memory (a deque of attempt timestamps per caller)."""

    def __init__(self, max_requests: int, window: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._attempts: defaultdict[str, deque[float]] = defaultdict(deque)

    def _prune(self, now: float) -> None:
        for identifier in [key for key, attempts in self._attempts.items() if attempts[-1] <= now - self.window]:
            del self._attempts[identifier]

    async def hit(self, identifier: str) -> float | None:
        now = self._clock()
        attempts = self._attempts[identifier]
        while attempts and attempts[0] <= now - self.window:
            attempts.popleft()

        if len(attempts) >= self.max_requests:
            return attempts[0] + self.window - now

        attempts.append(now)
        if len(self._attempts) > 1000:
            self._prune(now)
        return None


class RedisRateLimiter:
    """Sliding window counter in a redis sorted set, shared by all workers."""

    def __init__(
        self, redis: Redis, max_requests: int, window: float, *, prefix: str = "contact_rate_limit:"
    ) -> None:
        self.redis = redis
        self.max_requests = max_requests
        self.window = window
        self.prefix = prefix

    async def hit(self, identifier: str) -> float | None:
        key = self.prefix + identifier
        now = time.time()
        member = f"{now}:{uuid4().hex}"

        # add first and count in the same transaction, so concurrent hits see each other
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, now - self.window)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            pipe.expire(key, int(self.window) + 1)
            _, _, count, oldest, _ = await pipe.execute()

        if count <= self.max_requests:
            return None

        await self.redis.zrem(key, member)
        return max(oldest[0][1] + self.window - now, 0.0) if oldest else self.window
