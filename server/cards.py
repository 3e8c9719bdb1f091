"""
Cards and deck construction for UNO.

Cards are immutable values; only the pile or hand that holds them changes.
Each card carries a stable ``id`` so duplicate copies (two red 5s) can be
told apart by clients and in play requests.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from constants import (
    COLORED_VALUES,
    COPIES_PER_COLORED_CARD,
    COPIES_PER_WILD_CARD,
    PENALTY_AMOUNTS,
    PLAYABLE_COLORS,
    WILD_VALUES,
)


class Color(str, Enum):
    """Card colors. WILD cards take the color their player chooses."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    WILD = "wild"

    @classmethod
    def parse_choice(cls, value: Optional[str]) -> Optional["Color"]:
        """
        Parse a client-chosen color for a wild card.

        Returns:
            The Color, or None if value is missing or not a playable color.
        """
        if not value:
            return None
        try:
            color = cls(str(value).lower())
        except ValueError:
            return None
        return None if color == cls.WILD else color


class CardValue(str, Enum):
    """Card faces. "0" is part of the value set but not dealt in this deck."""

    ZERO = "0"
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    PLUS2 = "plus2"
    CHANGE = "change"
    PLUS4 = "plus4"


@dataclass(frozen=True)
class Card:
    """
    A single UNO card.

    Attributes:
        color: Card color, or WILD for change/plus4.
        value: Card face.
        id: Stable identifier distinguishing duplicates (e.g. "red-5-1").
    """

    color: Color
    value: CardValue
    id: str

    @property
    def is_wild(self) -> bool:
        return self.color == Color.WILD

    @property
    def is_penalty(self) -> bool:
        """Whether this card adds to the pending draw (plus2 / plus4)."""
        return self.value.value in PENALTY_AMOUNTS

    @property
    def penalty(self) -> int:
        """Number of cards this card adds to the pending draw."""
        return PENALTY_AMOUNTS.get(self.value.value, 0)

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "color": self.color.value,
            "value": self.value.value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Card":
        return cls(color=Color(d["color"]), value=CardValue(d["value"]), id=d["id"])

    def __str__(self) -> str:
        return f"{self.color.value}-{self.value.value}"


def build_deck() -> list[Card]:
    """
    Build the canonical, unshuffled 80-card deck.

    Returns:
        Two copies of every colored value in every color, followed by
        four of each wild card.
    """
    cards: list[Card] = []
    for color in PLAYABLE_COLORS:
        for value in COLORED_VALUES:
            for copy in range(1, COPIES_PER_COLORED_CARD + 1):
                cards.append(Card(Color(color), CardValue(value), f"{color}-{value}-{copy}"))

    for i in range(COPIES_PER_WILD_CARD):
        for value in WILD_VALUES:
            cards.append(Card(Color.WILD, CardValue(value), f"{value}-{i}"))

    return cards


def shuffle(cards: Sequence[Card], rng: Optional[random.Random] = None) -> list[Card]:
    """
    Return a uniformly shuffled copy of ``cards`` (Fisher-Yates).

    The input sequence is left untouched.

    Args:
        cards: Cards to shuffle.
        rng: Optional random source, for deterministic tests.
    """
    rng = rng or random
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
