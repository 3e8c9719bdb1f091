"""
Rate limiting for websocket traffic.

Two layers:
- ConnectionMessageLimiter: in-memory sliding window per websocket, applied
  to every inbound message. Always available.
- RateLimiter: Redis fixed-window counter keyed by client IP, applied to new
  websocket connections when REDIS_URL is configured. Shared across server
  instances; fails open if Redis is unavailable.
"""

import hashlib
import logging
import time
from typing import Optional

import redis.asyncio as redis
from fastapi import WebSocket

logger = logging.getLogger(__name__)


# (max_requests, window_seconds)
WEBSOCKET_CONNECT_LIMIT = (10, 60)


class RateLimiter:
    """Fixed-window rate limiter using Redis."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "uno:ratelimit"):
        """
        Args:
            redis_client: Async Redis client for counters.
            prefix: Key prefix for all counters.
        """
        self.redis = redis_client
        self.prefix = prefix

    async def is_allowed(
        self,
        key: str,
        limit: int,
        window_seconds: int,
    ) -> tuple[bool, dict]:
        """
        Check if a request is allowed under the rate limit.

        Atomically increments the counter for the current window.

        Returns:
            Tuple of (allowed, info) where info holds remaining, reset
            (seconds until window resets) and limit.
        """
        now = int(time.time())
        window_key = f"{self.prefix}:{key}:{now // window_seconds}"

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(window_key)
                pipe.expire(window_key, window_seconds + 1)
                results = await pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Rate limiter Redis error: {e}")
            return True, {"remaining": limit, "reset": window_seconds, "limit": limit}

        current_count = results[0]
        info = {
            "remaining": max(0, limit - current_count),
            "reset": window_seconds - (now % window_seconds),
            "limit": limit,
        }

        allowed = current_count <= limit
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}: {current_count}/{limit}")
        return allowed, info

    async def allow_connection(self, websocket: WebSocket) -> bool:
        """Check the per-IP websocket connect limit."""
        limit, window = WEBSOCKET_CONNECT_LIMIT
        allowed, _ = await self.is_allowed(
            f"ws_connect:{self.get_client_key(websocket)}", limit, window
        )
        return allowed

    def get_client_key(self, websocket: WebSocket) -> str:
        """Hashed client IP (honoring reverse-proxy headers)."""
        client_ip = self._get_client_ip(websocket)
        ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:16]
        return f"ip:{ip_hash}"

    def _get_client_ip(self, websocket: WebSocket) -> str:
        forwarded = websocket.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = websocket.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        if websocket.client:
            return websocket.client.host

        return "unknown"


class ConnectionMessageLimiter:
    """
    In-memory limiter for message frequency on one websocket.

    Keeps a sliding window of accepted message timestamps.
    """

    def __init__(self, max_messages: int = 30, window_seconds: int = 10):
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self.timestamps: list[float] = []

    def check(self, now: Optional[float] = None) -> bool:
        """
        Check if another message is allowed, recording it if so.

        Returns:
            True if the message is allowed, False if rate limited.
        """
        now = time.time() if now is None else now
        cutoff = now - self.window_seconds
        self.timestamps = [t for t in self.timestamps if t > cutoff]

        if len(self.timestamps) >= self.max_messages:
            return False

        self.timestamps.append(now)
        return True

    def reset(self) -> None:
        self.timestamps = []
