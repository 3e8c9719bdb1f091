"""
Event definitions for the UNO game event stream.

Every accepted game action is recorded as an immutable event. Events are
emitted by game.Game through an optional callback and consumed by
services.game_logger; they are not persisted.

Events that carry card identities from hidden hands (card_drawn,
penalty_drawn) are server-side only and must never be sent to clients.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import json


class EventType(str, Enum):
    """All possible event types in an UNO game."""

    # Lifecycle events
    GAME_CREATED = "game_created"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    HOST_CHANGED = "host_changed"
    GAME_STARTED = "game_started"
    GAME_RESTARTED = "game_restarted"
    GAME_WON = "game_won"

    # Gameplay events
    CARD_PLAYED = "card_played"
    CARD_DRAWN = "card_drawn"
    PENALTY_DRAWN = "penalty_drawn"
    UNO_CALLED = "uno_called"
    CHAT_MESSAGE = "chat_message"


@dataclass
class GameEvent:
    """
    An immutable record of something that happened in a game.

    Attributes:
        event_type: The type of event (from EventType enum).
        game_id: UUID of the game this event belongs to.
        sequence_num: Monotonically increasing sequence number within game.
        timestamp: When the event occurred (UTC).
        player_id: ID of player who triggered the event (if applicable).
        data: Event-specific payload data.
    """

    event_type: EventType
    game_id: str
    sequence_num: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    player_id: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize event to dictionary."""
        return {
            "event_type": self.event_type.value,
            "game_id": self.game_id,
            "sequence_num": self.sequence_num,
            "timestamp": self.timestamp.isoformat(),
            "player_id": self.player_id,
            "data": self.data,
        }

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: dict) -> "GameEvent":
        """Deserialize event from dictionary."""
        timestamp = d["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            event_type=EventType(d["event_type"]),
            game_id=d["game_id"],
            sequence_num=d["sequence_num"],
            timestamp=timestamp,
            player_id=d.get("player_id"),
            data=d.get("data", {}),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "GameEvent":
        """Deserialize event from JSON string."""
        return cls.from_dict(json.loads(json_str))
