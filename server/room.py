"""
Room management for multiplayer UNO games.

This module is the session registry: it maps room codes to rooms, keeps a
reverse index from connection id to room code, and tears rooms down when
their last player leaves.

A Room contains:
    - A unique 6-character code for joining
    - The Game with the authoritative state
    - The websocket of each connected player
    - A lock serializing mutations of this room's game

A connection belongs to at most one room at a time; the RoomManager's
player_rooms index makes that checkable and avoids scanning every room
on disconnect.
"""

import asyncio
import random
import string
from dataclasses import dataclass, field
from typing import Callable, Optional

from fastapi import WebSocket

from constants import ROOM_CODE_LENGTH
from errors import AlreadyInRoom, NotInRoom, RoomNotFound
from game import Game, GameOptions, Player
from logging_config import get_logger
from views import build_broadcast

logger = get_logger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class Room:
    """
    A game room hosting one UNO game.

    Attributes:
        code: 6-character room code for joining (e.g., "K7Q2ZD").
        game: The Game instance containing the game state.
        connections: Websocket of each connected player, by player id.
        game_lock: asyncio.Lock for serializing game mutations.
    """

    code: str
    game: Game
    connections: dict[str, WebSocket] = field(default_factory=dict)
    game_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def attach(self, player_id: str, websocket: Optional[WebSocket]) -> None:
        if websocket is not None:
            self.connections[player_id] = websocket

    def detach(self, player_id: str) -> None:
        self.connections.pop(player_id, None)

    def is_empty(self) -> bool:
        """Check if the room has no players."""
        return self.game.is_empty()

    def player_count(self) -> int:
        return len(self.game.players)

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """
        Send the same message to every connected player.

        Args:
            message: JSON-serializable message dict.
            exclude: Optional player ID to skip.
        """
        for player_id in list(self.connections):
            if player_id != exclude:
                await self.send_to(player_id, message)

    async def broadcast_state(self, message_type: str = "game_state", **extra) -> None:
        """
        Send every connected player their own sanitized view of the game.

        Args:
            message_type: The ``type`` of the message sent.
            **extra: Additional fields merged into every message.
        """
        for player_id, view in build_broadcast(self.game).items():
            await self.send_to(player_id, {"type": message_type, "game_state": view, **extra})

    async def send_to(self, player_id: str, message: dict) -> None:
        """
        Send a message to a specific player.

        A failed send is logged and otherwise ignored; the disconnect path
        of that player's websocket does the cleanup.
        """
        websocket = self.connections.get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.with_context(room_code=self.code, player_id=player_id).debug(
                f"Send failed: {e}"
            )


class RoomManager:
    """
    Manages all active game rooms.

    One instance is created at process start and passed to every request
    handler; tests create their own.
    """

    def __init__(self, game_logger=None) -> None:
        """
        Initialize an empty room manager.

        Args:
            game_logger: Optional services.game_logger.GameLogger installed as
                the event emitter of every new game.
        """
        self.rooms: dict[str, Room] = {}
        self.player_rooms: dict[str, str] = {}
        self.game_logger = game_logger

    def _generate_code(self, max_attempts: int = 100) -> str:
        """Generate a unique room code."""
        for _ in range(max_attempts):
            code = "".join(random.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code
        raise RuntimeError("Could not generate unique room code")

    def _event_emitter(self) -> Optional[Callable]:
        return self.game_logger.log_event if self.game_logger else None

    def create_room(
        self,
        host_id: str,
        host_name: str,
        websocket: Optional[WebSocket] = None,
        options: Optional[GameOptions] = None,
        code: Optional[str] = None,
    ) -> Room:
        """
        Create a new room with ``host_id`` as its only player and host.

        Args:
            host_id: Connection id of the creating player.
            host_name: Display name of the host.
            websocket: The host's websocket, if connected.
            options: Ruleset for the room.
            code: Explicit room code; generated if omitted.

        Returns:
            The newly created Room.

        Raises:
            AlreadyInRoom: If the host already belongs to a room.
            InvalidName: If the host name is unusable.
            ValueError: If an explicit code is already in use.
        """
        if host_id in self.player_rooms:
            raise AlreadyInRoom()

        if code is None:
            code = self._generate_code()
        else:
            code = code.upper()
            if code in self.rooms:
                raise ValueError(f"Room code {code} already in use")

        game = Game.create(
            code, host_id, host_name, options=options, event_emitter=self._event_emitter()
        )
        room = Room(code=code, game=game)
        room.attach(host_id, websocket)
        self.rooms[code] = room
        self.player_rooms[host_id] = code

        logger.with_context(room_code=code, player_id=host_id).info(
            f"Room created by {game.players[0].name}"
        )
        return room

    def get_room(self, code: str) -> Optional[Room]:
        """
        Get a room by its code (case-insensitive).

        Returns:
            The Room if found, None otherwise.
        """
        if not isinstance(code, str):
            return None
        return self.rooms.get(code.upper())

    def require_room(self, code: str) -> Room:
        """Get a room by code or raise RoomNotFound."""
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound()
        return room

    def member_room(self, code: str, player_id: str) -> Room:
        """
        Get the room ``code`` on behalf of one of its members.

        Raises:
            RoomNotFound, NotInRoom
        """
        room = self.require_room(code)
        if self.player_rooms.get(player_id) != room.code:
            raise NotInRoom()
        return room

    def join_room(
        self,
        code: str,
        player_id: str,
        player_name: str,
        websocket: Optional[WebSocket] = None,
    ) -> Room:
        """
        Add a player to an existing room.

        Raises:
            AlreadyInRoom, RoomNotFound, and the Game.add_player errors.
        """
        if player_id in self.player_rooms:
            raise AlreadyInRoom()
        room = self.require_room(code)

        player = room.game.add_player(player_id, player_name)
        room.attach(player_id, websocket)
        self.player_rooms[player_id] = room.code

        logger.with_context(room_code=room.code, player_id=player_id).info(
            f"{player.name} joined ({room.player_count()} players)"
        )
        return room

    def find_player_room(self, player_id: str) -> Optional[Room]:
        """Find which room a player is in, or None."""
        code = self.player_rooms.get(player_id)
        return self.rooms.get(code) if code else None

    def leave(self, player_id: str) -> tuple[Optional[Room], Optional[Player]]:
        """
        Remove a player from their room (explicit leave or disconnect).

        Deletes the room once it is empty. Never raises.

        Returns:
            (room, removed player). The room is None if the player was not in
            a room or the room was deleted; the remaining members of a
            returned room should be sent a fresh state.
        """
        room = self.find_player_room(player_id)
        self.player_rooms.pop(player_id, None)
        if room is None:
            return None, None

        removed = room.game.remove_player(player_id)
        room.detach(player_id)
        log = logger.with_context(room_code=room.code, player_id=player_id)
        if removed:
            log.info(f"{removed.name} left ({room.player_count()} players remain)")

        if room.is_empty():
            self.remove_room(room.code)
            return None, removed

        return room, removed

    def remove_room(self, code: str) -> None:
        """
        Delete a room and forget its players.

        Args:
            code: The room code to remove.
        """
        room = self.rooms.pop(code, None)
        if room is None:
            return
        for player in room.game.players:
            self.player_rooms.pop(player.id, None)
        logger.with_context(room_code=code).info("Room deleted")

    def clear(self) -> None:
        """Drop every room (tests and shutdown)."""
        self.rooms.clear()
        self.player_rooms.clear()
