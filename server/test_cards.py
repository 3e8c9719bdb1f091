"""
Test suite for cards and deck construction.

Covers:
- Deck composition (80 cards, unique ids)
- Shuffle is a non-mutating permutation
- Wild color parsing

Run with: pytest test_cards.py -v
"""

import random
from collections import Counter

import pytest

from cards import Card, CardValue, Color, build_deck, shuffle
from constants import DECK_SIZE


class TestBuildDeck:

    def test_deck_has_80_cards(self):
        assert len(build_deck()) == 80
        assert DECK_SIZE == 80

    def test_card_ids_are_unique(self):
        deck = build_deck()
        assert len({c.id for c in deck}) == len(deck)

    def test_colored_cards_two_copies_each(self):
        counts = Counter((c.color, c.value) for c in build_deck() if not c.is_wild)
        assert len(counts) == 4 * 10
        assert set(counts.values()) == {2}

    def test_each_color_has_20_cards(self):
        counts = Counter(c.color for c in build_deck())
        for color in (Color.RED, Color.BLUE, Color.GREEN, Color.YELLOW):
            assert counts[color] == 20

    def test_four_of_each_wild(self):
        counts = Counter(c.value for c in build_deck() if c.is_wild)
        assert counts[CardValue.CHANGE] == 4
        assert counts[CardValue.PLUS4] == 4

    def test_no_zeros_dealt(self):
        assert all(c.value != CardValue.ZERO for c in build_deck())

    def test_card_id_format(self):
        ids = {c.id for c in build_deck()}
        assert "red-5-1" in ids
        assert "yellow-plus2-2" in ids
        assert "change-0" in ids
        assert "plus4-3" in ids


class TestCard:

    def test_penalty_values(self):
        assert Card(Color.RED, CardValue.PLUS2, "r").penalty == 2
        assert Card(Color.WILD, CardValue.PLUS4, "w").penalty == 4
        assert Card(Color.RED, CardValue.FIVE, "n").penalty == 0

    def test_is_penalty(self):
        assert Card(Color.BLUE, CardValue.PLUS2, "b").is_penalty
        assert Card(Color.WILD, CardValue.PLUS4, "w").is_penalty
        assert not Card(Color.WILD, CardValue.CHANGE, "c").is_penalty

    def test_cards_are_immutable(self):
        card = Card(Color.RED, CardValue.ONE, "red-1-1")
        with pytest.raises(Exception):
            card.color = Color.BLUE

    def test_to_dict(self):
        card = Card(Color.GREEN, CardValue.SEVEN, "green-7-2")
        assert card.to_dict() == {"id": "green-7-2", "color": "green", "value": "7"}
        assert Card.from_dict(card.to_dict()) == card


class TestShuffle:

    def test_shuffle_is_permutation(self):
        deck = build_deck()
        shuffled = shuffle(deck)
        assert sorted(c.id for c in shuffled) == sorted(c.id for c in deck)

    def test_shuffle_does_not_mutate_input(self):
        deck = build_deck()
        before = list(deck)
        shuffle(deck, random.Random(7))
        assert deck == before

    def test_seeded_shuffle_is_deterministic(self):
        deck = build_deck()
        assert shuffle(deck, random.Random(42)) == shuffle(deck, random.Random(42))

    def test_shuffle_changes_order(self):
        deck = build_deck()
        assert shuffle(deck, random.Random(3)) != deck

    def test_shuffle_empty_and_single(self):
        assert shuffle([]) == []
        card = Card(Color.RED, CardValue.ONE, "x")
        assert shuffle([card]) == [card]


class TestColorChoice:

    def test_parse_playable_colors(self):
        assert Color.parse_choice("green") == Color.GREEN
        assert Color.parse_choice("RED") == Color.RED

    def test_wild_is_not_a_choice(self):
        assert Color.parse_choice("wild") is None

    def test_invalid_choices(self):
        assert Color.parse_choice(None) is None
        assert Color.parse_choice("") is None
        assert Color.parse_choice("purple") is None
