"""
Structured logging of game events.

GameLogger is installed as the event emitter of every Game created by the
RoomManager. Each event becomes one log record carrying the room code and
player id as context, and per-type counters feed the /metrics endpoint.

Usage:
    game_logger = GameLogger()
    room_manager = RoomManager(game_logger=game_logger)

Hidden card identities in card_drawn/penalty_drawn payloads are logged at
DEBUG only.
"""

from collections import Counter
from typing import TYPE_CHECKING

from logging_config import get_logger

if TYPE_CHECKING:
    from models.events import GameEvent

log = get_logger(__name__)

# Events whose payload reveals cards from a hidden hand
_PRIVATE_EVENTS = {"card_drawn", "penalty_drawn"}


class GameLogger:
    """Writes game events to the log and counts them by type."""

    def __init__(self) -> None:
        self.event_counts: Counter = Counter()

    def log_event(self, event: "GameEvent") -> None:
        """
        Record one game event.

        Args:
            event: The emitted GameEvent.
        """
        event_type = event.event_type.value
        self.event_counts[event_type] += 1

        context = log.with_context(
            room_code=event.data.get("room_code"),
            player_id=event.player_id,
            game_id=event.game_id,
        )

        if event_type in _PRIVATE_EVENTS:
            amount = event.data.get("amount", 1)
            context.info(f"#{event.sequence_num} {event_type} ({amount} card(s))")
            context.debug(f"#{event.sequence_num} {event_type} payload: {event.data}")
            return

        summary = {k: v for k, v in event.data.items() if k != "room_code"}
        context.info(f"#{event.sequence_num} {event_type} {summary}")

    def snapshot(self) -> dict[str, int]:
        """Event counts by type, for metrics."""
        return dict(self.event_counts)
