"""
Centralized configuration for the UNO game server.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.PORT)
    print(config.game_defaults.max_players)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass
class GameDefaults:
    """Default rule settings for new rooms."""
    max_players: int = 8
    hand_size: int = 7
    stacking: bool = True


@dataclass
class ChatLimits:
    """Chat log bounds."""
    history: int = 50
    view: int = 20
    message_length: int = 200


@dataclass
class ServerConfig:
    """Server configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Optional services
    REDIS_URL: str = ""
    SENTRY_DSN: str = ""

    # Room settings
    ROOM_CODE_LENGTH: int = 6

    # Per-connection websocket message limiting
    RATE_LIMIT_ENABLED: bool = True
    WS_MESSAGES_PER_WINDOW: int = 30
    WS_MESSAGE_WINDOW_SECONDS: int = 10

    game_defaults: GameDefaults = field(default_factory=GameDefaults)
    chat: ChatLimits = field(default_factory=ChatLimits)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        return cls(
            HOST=get_env("HOST", "0.0.0.0"),
            PORT=get_env_int("PORT", 8000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            REDIS_URL=get_env("REDIS_URL", ""),
            SENTRY_DSN=get_env("SENTRY_DSN", ""),
            ROOM_CODE_LENGTH=get_env_int("ROOM_CODE_LENGTH", 6),
            RATE_LIMIT_ENABLED=get_env_bool("RATE_LIMIT_ENABLED", True),
            WS_MESSAGES_PER_WINDOW=get_env_int("WS_MESSAGES_PER_WINDOW", 30),
            WS_MESSAGE_WINDOW_SECONDS=get_env_int("WS_MESSAGE_WINDOW_SECONDS", 10),
            game_defaults=GameDefaults(
                max_players=get_env_int("MAX_PLAYERS_PER_ROOM", 8),
                hand_size=get_env_int("HAND_SIZE", 7),
                stacking=get_env_bool("STACKING_ENABLED", True),
            ),
            chat=ChatLimits(
                history=get_env_int("CHAT_HISTORY_LIMIT", 50),
                view=get_env_int("CHAT_VIEW_LIMIT", 20),
                message_length=get_env_int("CHAT_MESSAGE_MAX_LENGTH", 200),
            ),
        )


# Global config instance - loaded once at module import
config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ServerConfig.from_env()
    return config
