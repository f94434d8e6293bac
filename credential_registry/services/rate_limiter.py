"""Token-bucket rate limiting for registry writes.

Only calls that create records an outsider could spam are limited:
issuance, logged verification, ratings and dispute filing.  Each bucket
holds `capacity` tokens and refills at `refill_rate` tokens per second;
a call spends one token or is rejected with a retry hint.

WHY A TOKEN BUCKET
------------------
A fixed window ("20 ratings per minute") lets a client spend 20 at
11:59:59 and 20 more at 12:00:01.  A sliding log fixes that but stores a
timestamp per request.  The token bucket keeps two numbers per key
(tokens left, last refill time), allows a short burst up to `capacity`,
and enforces `refill_rate` as the long-run average.  A relying party
verifying a batch of credentials is exactly that kind of burst.

Keys are `<scope>:identity:<sub>` or `<scope>:ip:<host>`; the scope keeps
one caller's ratings from draining their issuance budget.

Two backends share one Protocol: an in-process dict for dev/test and a
Redis hash updated by a Lua script so every API instance sees the same
bucket.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

KEY_PREFIX = "registry-ratelimit"


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of one bucket check.

    retry_after is the number of seconds until the next token (0 if allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    retry_after: float


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    capacity: int = 60
    refill_rate: float = 1.0


# Per-action presets.  Issuance is the costliest write (counter, token and
# record), so it gets the tightest bucket.
ISSUE_LIMIT = RateLimitConfig(capacity=30, refill_rate=0.5)
VERIFY_LIMIT = RateLimitConfig(capacity=120, refill_rate=2.0)
FEEDBACK_LIMIT = RateLimitConfig(capacity=20, refill_rate=0.2)


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


class InMemoryRateLimiter:
    """Single-process buckets for dev and tests.

    Behind a load balancer each process would keep its own dict, and a
    caller would get `capacity` tokens per instance.  Production uses
    RedisRateLimiter.
    """

    def __init__(self) -> None:
        # key -> (tokens_remaining, last_refill_timestamp)
        self._buckets: dict[str, tuple[float, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = time.monotonic()

        if key not in self._buckets:
            # First call from this key: full bucket, minus this call.
            self._buckets[key] = (config.capacity - 1, now)
            return RateLimitResult(
                allowed=True,
                remaining=config.capacity - 1,
                limit=config.capacity,
                retry_after=0,
            )

        # Refill for the time elapsed, capped at capacity.
        tokens, last_refill = self._buckets[key]
        tokens = min(config.capacity, tokens + (now - last_refill) * config.refill_rate)

        if tokens >= 1:
            tokens -= 1
            self._buckets[key] = (tokens, now)
            return RateLimitResult(
                allowed=True,
                remaining=int(tokens),
                limit=config.capacity,
                retry_after=0,
            )

        # Empty: the next token arrives after (1 - tokens) / refill_rate seconds.
        self._buckets[key] = (tokens, now)
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=(1 - tokens) / config.refill_rate,
        )

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


class RedisRateLimiter:
    """Buckets stored as Redis hashes, shared by every API instance.

    WHY A LUA SCRIPT
    ----------------
    Checking a bucket is read, refill, spend, write back.  Done as separate
    commands, two API instances can both read "1 token left", both spend
    it, and both let their request through.  Redis runs a script as one
    command with nothing interleaved, so the read and the write see the
    same bucket.

    Idle buckets expire once they would have refilled completely (plus a
    minute), since a full bucket and a missing one behave the same.
    """

    # KEYS[1] = bucket key
    # ARGV[1] = capacity, ARGV[2] = refill_rate, ARGV[3] = now (seconds)
    # Returns {allowed (0/1), remaining, retry_after_ms}
    _LUA_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = math.ceil(capacity / refill_rate) + 60

    local bucket = redis.call('HMGET', key, 'tokens', 'last_refill')
    local tokens = tonumber(bucket[1])
    local last_refill = tonumber(bucket[2])

    -- No hash yet: first call, or the bucket expired while full.
    if tokens == nil then
        tokens = capacity - 1
        redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
        redis.call('EXPIRE', key, ttl)
        return {1, tokens, 0}
    end

    -- Refill for the elapsed time; `now` comes from the caller so every
    -- instance must keep its clock in sync (NTP).
    tokens = math.min(capacity, tokens + (now - last_refill) * refill_rate)

    if tokens >= 1 then
        tokens = tokens - 1
        redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
        redis.call('EXPIRE', key, ttl)
        return {1, math.floor(tokens), 0}
    end

    -- Empty.  Keep the partial refill so the retry hint stays accurate.
    redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
    return {0, 0, math.ceil((1 - tokens) / refill_rate * 1000)}
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        self._script = None

    def _get_script(self):
        if self._script is None:
            self._script = self._redis.register_script(self._LUA_SCRIPT)
        return self._script

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        allowed, remaining, retry_after_ms = await self._get_script()(
            keys=[f"{KEY_PREFIX}:{key}"],
            args=[config.capacity, config.refill_rate, time.time()],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining),
            limit=config.capacity,
            retry_after=retry_after_ms / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(f"{KEY_PREFIX}:{key}")
