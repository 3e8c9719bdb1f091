"""
Pure rule checks for UNO.

Nothing here mutates game state; game.Game calls these before changing
anything so that a rejected request leaves the session untouched.
"""

from typing import Iterable, Optional

from cards import Card, CardValue, Color


def is_legal_play(
    card: Card,
    top_card: Card,
    chosen_color: Optional[Color],
    pending_draw: int = 0,
) -> bool:
    """
    Check whether ``card`` may be played on ``top_card``.

    Rules, in order:
        - While a draw penalty is pending, only plus2/plus4 may be played
          (any color): the player stacks, or accepts the draw separately.
        - Wild cards are always playable.
        - A card matching the chosen wild color is playable.
        - Otherwise the card must match the top card's color or value.

    Args:
        card: Card the player wants to play.
        top_card: Current top of the discard pile.
        chosen_color: Color picked for the last wild card, if any.
        pending_draw: Accumulated forced-draw count.
    """
    if pending_draw > 0:
        return card.is_penalty

    if card.is_wild:
        return True

    if chosen_color is not None and card.color == chosen_color:
        return True

    return card.color == top_card.color or card.value == top_card.value


def has_penalty_card(hand: Iterable[Card]) -> bool:
    """Whether a hand can stack onto a pending draw."""
    return any(card.is_penalty for card in hand)


def is_valid_opening_card(card: Card) -> bool:
    """Whether a card may be turned up to start the discard pile."""
    return not card.is_wild and card.value != CardValue.PLUS2


def step_index(index: int, direction: int, player_count: int) -> int:
    """Seat index one step from ``index`` in ``direction`` (+1 or -1)."""
    return (index + direction + player_count) % player_count
