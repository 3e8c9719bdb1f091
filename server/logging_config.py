"""
Structured logging configuration for the UNO game server.

Every record can carry four pieces of context:

    request_id  HTTP request (set by middleware.request_id)
    player_id   websocket connection (set by the /ws endpoint)
    room_code   room a websocket message targets (set by handlers.dispatch)
    game_id     game an event belongs to (passed by services.game_logger)

Context comes from the context vars below, and explicit ``extra`` fields on a
record (see ContextLogger.with_context) take precedence. Production writes
one JSON object per line; development writes colored single lines.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
player_id_var: ContextVar[Optional[str]] = ContextVar("player_id", default=None)
room_code_var: ContextVar[Optional[str]] = ContextVar("room_code", default=None)

# Field name -> (short label, characters shown in development output)
CONTEXT_FIELDS = {
    "room_code": ("room", None),
    "player_id": ("player", 8),
    "game_id": ("game", 8),
    "request_id": ("req", 8),
}

_CONTEXT_VARS = {
    "request_id": request_id_var,
    "player_id": player_id_var,
    "room_code": room_code_var,
}

# Libraries that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error", "websockets", "asyncio")


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """Context for one record: context vars overlaid with record extras."""
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if not value and name in _CONTEXT_VARS:
            value = _CONTEXT_VARS[name].get()
        if value:
            context[name] = str(value)
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context flattened into the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Colored single-line output for local play-testing.

    Example:
        12:03:44.512 INFO     room [room=K7Q2ZD player=3f2a9c1e] Host joined (2 players)
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        level = f"{color}{record.levelname:8}{self.RESET if color else ''}"
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        output = f"{clock} {level} {record.name}{self.format_context(record)} {record.getMessage()}"
        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output

    @staticmethod
    def format_context(record: logging.LogRecord) -> str:
        parts = []
        for name, value in record_context(record).items():
            label, width = CONTEXT_FIELDS[name]
            parts.append(f"{label}={value[:width] if width else value}")
        return f" [{' '.join(parts)}]" if parts else ""


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        environment: "production" selects JSON output.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JSONFormatter() if environment == "production" else DevelopmentFormatter()
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level}, environment={environment}"
    )


class ContextLogger(logging.LoggerAdapter):
    """
    Logger that stamps room/player/game context onto every record.

    Usage:
        logger = get_logger(__name__)
        logger.with_context(room_code=room.code, player_id=player.id).info("joined")
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, extra or {})

    def with_context(self, **context) -> "ContextLogger":
        """A copy of this logger with ``context`` added to its fields."""
        return ContextLogger(self.logger, {**self.extra, **context})

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Context-aware logger for a module (pass ``__name__``)."""
    return ContextLogger(logging.getLogger(name))
