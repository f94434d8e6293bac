"""Rate limiting dependency for registry routes.

Declared per route, so read-only queries and health probes are never
limited:

    POST /v1/credentials               ISSUE_LIMIT
    POST /v1/credentials/delegated     ISSUE_LIMIT
    POST /v1/credentials/{id}/verify   VERIFY_LIMIT
    PUT  /v1/credentials/{id}/ratings  FEEDBACK_LIMIT
    POST /v1/credentials/{id}/dispute  FEEDBACK_LIMIT

Buckets are keyed by caller identity when a bearer token is present,
else by client IP.  Limited routes answer with X-RateLimit-Limit and
X-RateLimit-Remaining so clients can throttle themselves; a 429 also
carries Retry-After.  The headers go on the dependency's `Response`,
which FastAPI merges into whatever the route returns.
"""

from __future__ import annotations

import logging

import jwt as pyjwt
from fastapi import HTTPException, Request, Response, status

from credential_registry.core.metrics import RATE_LIMIT_HITS
from credential_registry.db.redis import redis_pool
from credential_registry.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

_rate_limiter: RateLimiter
if redis_pool is not None:
    _rate_limiter = RedisRateLimiter(redis_pool)
else:
    _rate_limiter = InMemoryRateLimiter()


def require_rate_limit(config: RateLimitConfig, *, scope: str):
    """Dependency factory: spend one token from the caller's `scope` bucket.

    Usage:
        @router.post("", dependencies=[Depends(require_rate_limit(ISSUE_LIMIT, scope="issue"))])
    """

    async def _check(request: Request, response: Response) -> None:
        key = f"{scope}:{_build_key(request)}"
        result: RateLimitResult = await _rate_limiter.check(key, config)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(
                key_type="identity" if ":identity:" in key else "ip"
            ).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check


def _build_key(request: Request) -> str:
    """Key by token subject when present, else by client IP.

    The token is decoded without verification: only `sub` is needed, and
    a forged subject just lands in its own bucket.  require_user still
    rejects it.
    """
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        try:
            claims = pyjwt.decode(auth_header[7:], options={"verify_signature": False})
        except pyjwt.PyJWTError:
            claims = {}
        sub = claims.get("sub")
        if sub:
            return f"identity:{sub}"

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
