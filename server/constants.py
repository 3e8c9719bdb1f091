"""
Game constants for UNO.

This module is the single source of truth for deck composition and room
limits. Limits that operators may tune are read from config.py (and so from
environment variables); deck composition is fixed by the ruleset.

Deck (80 cards):
    - 4 colors x ("1".."9", "plus2") x 2 copies = 72 colored cards
    - 4 wild "change" cards (pick a color)
    - 4 wild "plus4" cards (pick a color, next player draws 4)
"""

from config import config


# =============================================================================
# Deck Composition
# =============================================================================

PLAYABLE_COLORS: tuple[str, ...] = ("red", "blue", "green", "yellow")
WILD_COLOR = "wild"

NUMBER_VALUES: tuple[str, ...] = ("1", "2", "3", "4", "5", "6", "7", "8", "9")
COLORED_VALUES: tuple[str, ...] = NUMBER_VALUES + ("plus2",)
WILD_VALUES: tuple[str, ...] = ("change", "plus4")

COPIES_PER_COLORED_CARD = 2
COPIES_PER_WILD_CARD = 4

DECK_SIZE = (
    len(PLAYABLE_COLORS) * len(COLORED_VALUES) * COPIES_PER_COLORED_CARD
    + len(WILD_VALUES) * COPIES_PER_WILD_CARD
)

# Cards added to the pending draw count by each penalty value
PENALTY_AMOUNTS: dict[str, int] = {
    "plus2": 2,
    "plus4": 4,
}


# =============================================================================
# Room & Game Limits
# =============================================================================

MIN_PLAYERS = 2
MAX_PLAYERS = config.game_defaults.max_players
CLASSIC_MAX_PLAYERS = 4
HAND_SIZE = config.game_defaults.hand_size
STACKING_ENABLED = config.game_defaults.stacking
ROOM_CODE_LENGTH = config.ROOM_CODE_LENGTH
MAX_NAME_LENGTH = 20

CHAT_HISTORY_LIMIT = config.chat.history
CHAT_VIEW_LIMIT = config.chat.view
CHAT_MESSAGE_MAX_LENGTH = config.chat.message_length
