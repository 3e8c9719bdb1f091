"""
Test suite for the pure legality rules.

Run with: pytest test_rules.py -v
"""

from cards import Card, CardValue, Color
from rules import has_penalty_card, is_legal_play, is_valid_opening_card, step_index


def card(color: str, value: str, copy: int = 1) -> Card:
    return Card(Color(color), CardValue(value), f"{color}-{value}-{copy}")


def wild(value: str, i: int = 0) -> Card:
    return Card(Color.WILD, CardValue(value), f"{value}-{i}")


class TestMatching:

    def test_same_color_is_legal(self):
        assert is_legal_play(card("red", "5"), card("red", "3"), None)

    def test_same_value_is_legal(self):
        assert is_legal_play(card("blue", "3"), card("red", "3"), None)

    def test_no_match_is_illegal(self):
        assert not is_legal_play(card("blue", "7"), card("red", "5"), None)

    def test_matching_is_symmetric(self):
        pairs = [
            (card("red", "5"), card("red", "3")),
            (card("blue", "3"), card("red", "3")),
            (card("green", "plus2"), card("yellow", "plus2")),
            (card("blue", "7"), card("red", "5")),
        ]
        for a, b in pairs:
            assert is_legal_play(a, b, None) == is_legal_play(b, a, None)

    def test_plus2_matches_by_value(self):
        assert is_legal_play(card("green", "plus2"), card("red", "plus2"), None)


class TestWilds:

    def test_wild_always_legal(self):
        top = card("red", "5")
        assert is_legal_play(wild("change"), top, None)
        assert is_legal_play(wild("plus4"), top, Color.BLUE)

    def test_chosen_color_is_legal(self):
        assert is_legal_play(card("green", "2"), wild("change"), Color.GREEN)

    def test_other_color_after_wild_is_illegal(self):
        assert not is_legal_play(card("red", "2"), wild("change"), Color.GREEN)

    def test_wild_on_wild_legal(self):
        assert is_legal_play(wild("change", 1), wild("plus4"), Color.RED)


class TestPendingDraw:

    def test_non_penalty_forbidden_while_pending(self):
        top = card("red", "plus2")
        assert not is_legal_play(card("red", "5"), top, None, pending_draw=2)
        assert not is_legal_play(wild("change"), top, None, pending_draw=2)

    def test_penalty_any_color_legal_while_pending(self):
        top = wild("plus4")
        assert is_legal_play(card("blue", "plus2"), top, Color.GREEN, pending_draw=4)
        assert is_legal_play(card("yellow", "plus2"), top, Color.GREEN, pending_draw=4)
        assert is_legal_play(wild("plus4", 1), top, Color.GREEN, pending_draw=4)

    def test_matching_card_still_forbidden_while_pending(self):
        top = card("red", "plus2")
        assert not is_legal_play(card("red", "9"), top, None, pending_draw=2)


class TestHelpers:

    def test_has_penalty_card(self):
        assert has_penalty_card([card("red", "1"), card("blue", "plus2")])
        assert has_penalty_card([wild("plus4")])
        assert not has_penalty_card([card("red", "1"), wild("change")])
        assert not has_penalty_card([])

    def test_opening_card(self):
        assert is_valid_opening_card(card("red", "4"))
        assert not is_valid_opening_card(card("red", "plus2"))
        assert not is_valid_opening_card(wild("change"))
        assert not is_valid_opening_card(wild("plus4"))

    def test_step_index_forward_wraps(self):
        assert step_index(0, 1, 3) == 1
        assert step_index(2, 1, 3) == 0

    def test_step_index_backward_wraps(self):
        assert step_index(0, -1, 3) == 2
        assert step_index(1, -1, 3) == 0
