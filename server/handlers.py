"""WebSocket message handlers for the UNO card game.

Each handler corresponds to a single message type from the client and is
dispatched via the HANDLERS dict. Handlers raise errors.GameError for
rejected requests; dispatch() reports those to the requester only.
Every accepted mutation ends with one state broadcast to the room.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket

from errors import GameError
from game import GameOptions
from logging_config import room_code_var
from room import Room, RoomManager

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    player_id: str
    current_room: Optional[Room] = None


def _member_room(data: dict, ctx: ConnectionContext, room_manager: RoomManager) -> Room:
    """Resolve the room a request refers to, checking the caller belongs to it."""
    code = data.get("room_code") or (ctx.current_room.code if ctx.current_room else "")
    return room_manager.member_room(code, ctx.player_id)


async def handle_player_leave(room_manager: RoomManager, player_id: str) -> None:
    """Remove a player from their room and tell the remaining members."""
    room = room_manager.find_player_room(player_id)
    if room is None:
        return

    async with room.game_lock:
        remaining, removed = room_manager.leave(player_id)
        if remaining and removed:
            await remaining.broadcast_state("player_left", player_name=removed.name)


# ---------------------------------------------------------------------------
# Lobby / Room handlers
# ---------------------------------------------------------------------------

async def handle_create_room(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    options = GameOptions.from_client_data(data)
    room = room_manager.create_room(
        ctx.player_id,
        data.get("player_name", ""),
        websocket=ctx.websocket,
        options=options,
    )
    ctx.current_room = room

    await ctx.websocket.send_json({
        "type": "room_created",
        "room_code": room.code,
        "player_id": ctx.player_id,
    })
    await room.broadcast_state()


async def handle_join_room(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = room_manager.require_room(data.get("room_code", ""))
    async with room.game_lock:
        room_manager.join_room(
            room.code,
            ctx.player_id,
            data.get("player_name", ""),
            websocket=ctx.websocket,
        )
        ctx.current_room = room

        await ctx.websocket.send_json({
            "type": "room_joined",
            "room_code": room.code,
            "player_id": ctx.player_id,
        })
        await room.broadcast_state()


async def handle_leave_room(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    await handle_player_leave(room_manager, ctx.player_id)
    ctx.current_room = None
    await ctx.websocket.send_json({"type": "room_left"})


# ---------------------------------------------------------------------------
# Game lifecycle handlers
# ---------------------------------------------------------------------------

async def handle_start_game(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        room.game.start_game(ctx.player_id)
        logger.info(f"Game started in {room.code} with {room.player_count()} players")
        await room.broadcast_state("game_started")


async def handle_restart_game(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        room.game.restart(ctx.player_id)
        logger.info(f"Game restarted in {room.code}")
        await room.broadcast_state("game_started")


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

async def handle_play_card(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        room.game.play_card(ctx.player_id, data.get("card_id", ""), data.get("chosen_color"))
        if room.game.winner:
            logger.info(f"{room.game.winner} won in {room.code}")
        await room.broadcast_state()


async def handle_draw_card(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        card = room.game.draw_card(ctx.player_id)
        if card:
            await ctx.websocket.send_json({"type": "card_drawn", "card": card.to_dict()})
        await room.broadcast_state()


async def handle_accept_pending_draw(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        drawn = room.game.accept_pending_draw(ctx.player_id)
        if drawn:
            await room.broadcast_state()


async def handle_say_uno(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        player = room.game.say_uno(ctx.player_id)
        await room.broadcast_state("player_said_uno", player_name=player.name)


async def handle_send_chat_message(data: dict, ctx: ConnectionContext, *, room_manager, **kw) -> None:
    room = _member_room(data, ctx, room_manager)
    async with room.game_lock:
        if room.game.add_chat_message(ctx.player_id, data.get("text", "")):
            await room.broadcast_state()


# ---------------------------------------------------------------------------
# Handler dispatch
# ---------------------------------------------------------------------------

HANDLERS = {
    "create_room": handle_create_room,
    "join_room": handle_join_room,
    "leave_room": handle_leave_room,
    "start_game": handle_start_game,
    "restart_game": handle_restart_game,
    "play_card": handle_play_card,
    "draw_card": handle_draw_card,
    "accept_pending_draw": handle_accept_pending_draw,
    "say_uno": handle_say_uno,
    "send_chat_message": handle_send_chat_message,
}


async def dispatch(data: dict, ctx: ConnectionContext, **deps) -> None:
    """
    Run the handler for one client message.

    Rejected requests are answered with an error to the requester only;
    nothing is broadcast.
    """
    message_type = data.get("type")
    handler = HANDLERS.get(message_type)
    if handler is None:
        await ctx.websocket.send_json({
            "type": "error",
            "kind": "UnknownRequest",
            "message": f"Unknown request: {message_type}",
        })
        return

    token = room_code_var.set(ctx.current_room.code if ctx.current_room else None)
    try:
        await handler(data, ctx, **deps)
    except GameError as e:
        logger.debug(f"Rejected {message_type}: {e.kind} ({e.message})")
        await ctx.websocket.send_json(e.to_dict())
    except Exception:
        logger.exception(f"Handler for {message_type} failed")
        await ctx.websocket.send_json({
            "type": "error",
            "kind": "ServerError",
            "message": "Something went wrong",
        })
    finally:
        room_code_var.reset(token)
