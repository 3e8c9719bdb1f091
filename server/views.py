"""
Per-player views of a game.

A Game object never leaves the server. Everything sent to a client is built
here, and each view contains exactly one hand: the viewer's own. Opponents
are reduced to a card count, and the draw pile to its size.
"""

from typing import Optional

from constants import CHAT_VIEW_LIMIT
from game import Game
from rules import has_penalty_card


def sanitize(game: Game, viewer_id: Optional[str]) -> dict:
    """
    Build the state of ``game`` as seen by ``viewer_id``.

    Args:
        game: The game to project.
        viewer_id: The player who will receive this view. None builds a view
            with no hand at all.

    Returns:
        JSON-serializable dict. Only the viewer's entry in ``players`` has a
        ``cards`` key; ``my_cards`` repeats it for convenience.
    """
    current = game.current_player() if game.started else None
    viewer = game.get_player(viewer_id) if viewer_id else None

    players_data = []
    for player in game.players:
        entry = {
            "id": player.id,
            "name": player.name,
            "card_count": len(player.hand),
            "is_host": player.is_host,
            "is_current_player": current is player,
        }
        if viewer is player:
            entry["cards"] = player.hand_to_dict()
        players_data.append(entry)

    top_card = game.top_card

    return {
        "room_code": game.room_code,
        "players": players_data,
        "top_card": top_card.to_dict() if top_card else None,
        "deck_count": len(game.draw_pile),
        "current_player_id": current.id if current else None,
        "direction": game.direction,
        "chosen_color": game.chosen_color.value if game.chosen_color else None,
        "started": game.started,
        "winner": game.winner,
        "pending_draw": game.pending_draw,
        "must_resolve": game.must_resolve,
        "can_stack": bool(viewer and has_penalty_card(viewer.hand)),
        "my_cards": viewer.hand_to_dict() if viewer else [],
        "is_my_turn": bool(viewer and current is viewer),
        "max_players": game.options.max_players,
        "stacking": game.options.stacking,
        "chat": [entry.to_dict() for entry in game.chat[-CHAT_VIEW_LIMIT:]],
    }


def build_broadcast(game: Game) -> dict[str, dict]:
    """Map every player id in ``game`` to that player's sanitized view."""
    return {player.id: sanitize(game, player.id) for player in game.players}
