"""
Room lookup API.

Lets the join page check a code before opening a websocket. Only public
room facts are returned: never player ids, names or cards.
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["rooms"])

_room_manager = None


def set_room_manager(room_manager) -> None:
    """Set the RoomManager used for lookups."""
    global _room_manager
    _room_manager = room_manager


class RoomInfoResponse(BaseModel):
    """Public facts about a room."""
    room_code: str
    player_count: int
    max_players: int
    started: bool
    joinable: bool


@router.get("/{code}", response_model=RoomInfoResponse)
async def get_room_info(code: str) -> RoomInfoResponse:
    """Look up a room by code (case-insensitive)."""
    if _room_manager is None:
        raise HTTPException(status_code=503, detail="Rooms not available")

    room = _room_manager.get_room(code)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")

    game = room.game
    return RoomInfoResponse(
        room_code=room.code,
        player_count=room.player_count(),
        max_players=game.options.max_players,
        started=game.started,
        joinable=not game.started and room.player_count() < game.options.max_players,
    )
