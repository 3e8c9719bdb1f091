"""Services package for the UNO game server."""

from .game_logger import GameLogger
from .ratelimit import ConnectionMessageLimiter, RateLimiter

__all__ = [
    "GameLogger",
    "ConnectionMessageLimiter",
    "RateLimiter",
]
