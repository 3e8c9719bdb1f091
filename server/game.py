"""
Game logic for UNO.

This module holds the authoritative state of one room's game and every rule
that mutates it: joining, dealing, playing and drawing cards, draw-penalty
stacking, win detection and disconnect reconciliation.

UNO Rules Summary (this ruleset):
    - 80-card deck: 1-9 and plus2 in four colors (two copies each),
      plus four wild "change" and four wild "plus4" cards
    - Each player is dealt 7 cards; the first player to empty their hand wins
    - Play a card matching the top card's color or value, or any wild card
    - Wild cards set a chosen color that the next card must follow
    - plus2/plus4 add to a pending draw; if the next player holds a penalty
      card they may stack it (passing the total on) or accept the draw,
      otherwise they draw the total immediately and lose their turn

Every public mutation validates first and raises an errors.GameError before
touching state, so a rejected request never changes the game.
"""

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Callable, Any

from cards import Card, CardValue, Color, build_deck, shuffle
from constants import (
    CHAT_HISTORY_LIMIT,
    CHAT_MESSAGE_MAX_LENGTH,
    CLASSIC_MAX_PLAYERS,
    DECK_SIZE,
    HAND_SIZE,
    MAX_NAME_LENGTH,
    MAX_PLAYERS,
    MIN_PLAYERS,
    STACKING_ENABLED,
)
from errors import (
    AlreadyInRoom,
    AlreadyStarted,
    CannotCallUno,
    CardNotInHand,
    GameOver,
    IllegalPlay,
    InvalidColor,
    InvalidName,
    NameTaken,
    NotEnoughPlayers,
    NotHost,
    NotInRoom,
    NotStarted,
    NotYourTurn,
    PendingDrawActive,
    RoomFull,
)
from rules import has_penalty_card, is_legal_play, is_valid_opening_card, step_index


@dataclass
class Player:
    """
    A player in an UNO game.

    Attributes:
        id: Connection identifier (ephemeral, one per websocket).
        name: Display name, unique within the room (case-insensitive).
        hand: Cards held, in the order they were received.
        is_host: Whether this player may start and restart the game.
    """

    id: str
    name: str
    hand: list[Card] = field(default_factory=list)
    is_host: bool = False

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def hand_to_dict(self) -> list[dict]:
        return [card.to_dict() for card in self.hand]


@dataclass
class ChatEntry:
    """A chat line. System entries (joins, wins, UNO calls) have no author."""

    text: str
    author: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_system(self) -> bool:
        return self.author is None

    def to_dict(self) -> dict:
        return {
            "author": self.author,
            "text": self.text,
            "system": self.is_system,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class GameOptions:
    """
    Ruleset configuration.

    The default is the full ruleset (8 players, penalty stacking). The
    classic variant is the same game with at most 4 players and no stacking.
    """

    max_players: int = MAX_PLAYERS
    """Join limit for the room."""

    stacking: bool = STACKING_ENABLED
    """Allow answering a pending plus2/plus4 with another penalty card."""

    hand_size: int = HAND_SIZE
    """Cards dealt to each player."""

    @classmethod
    def classic(cls) -> "GameOptions":
        return cls(max_players=CLASSIC_MAX_PLAYERS, stacking=False)

    @classmethod
    def from_client_data(cls, data: dict) -> "GameOptions":
        """Build GameOptions from a create_room message."""
        if data.get("variant") == "classic":
            return cls.classic()
        return cls()


@dataclass
class Game:
    """
    Authoritative state of one room's UNO game.

    Attributes:
        room_code: Code of the room this game belongs to.
        players: Players in turn order (join order).
        draw_pile: Face-down cards; index 0 is the next card drawn.
        discard_pile: Played cards; the last entry is the top card.
        current_player_index: Index into players of whose turn it is.
        direction: +1 or -1. Fixed at +1 by this ruleset.
        chosen_color: Color picked for the wild card on top, if any.
        pending_draw: Accumulated forced-draw count from penalty cards.
        must_resolve: Current player must stack a penalty card or accept
            the pending draw.
        started: Cards have been dealt.
        winner: Name of the player who emptied their hand.
        chat: Bounded chat/system log, oldest first.
        options: Ruleset configuration.
        game_id: Unique identifier for the event stream.
    """

    room_code: str = ""
    players: list[Player] = field(default_factory=list)
    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    current_player_index: int = 0
    direction: int = 1
    chosen_color: Optional[Color] = None
    pending_draw: int = 0
    must_resolve: bool = False
    started: bool = False
    winner: Optional[str] = None
    chat: list[ChatEntry] = field(default_factory=list)
    options: GameOptions = field(default_factory=GameOptions)

    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    rng: Optional[random.Random] = field(default=None, repr=False, compare=False)
    _event_emitter: Optional[Callable[["GameEvent"], None]] = field(
        default=None, repr=False, compare=False
    )
    _sequence_num: int = field(default=0, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        room_code: str,
        host_id: str,
        host_name: str,
        options: Optional[GameOptions] = None,
        event_emitter: Optional[Callable[["GameEvent"], None]] = None,
    ) -> "Game":
        """
        Create a one-player, not-yet-started game with ``host_id`` as host.

        Raises:
            InvalidName: If the host name is blank or too long.
        """
        name = _clean_name(host_name)
        game = cls(room_code=room_code, options=options or GameOptions())
        if event_emitter:
            game.set_event_emitter(event_emitter)
        game.players.append(Player(id=host_id, name=name, is_host=True))
        game._emit("game_created", player_id=host_id, host_name=name)
        return game

    def set_event_emitter(self, emitter: Callable[["GameEvent"], None]) -> None:
        """
        Set callback for event emission.

        The emitter will be called with each GameEvent as it occurs.

        Args:
            emitter: Callback function that receives GameEvent objects.
        """
        self._event_emitter = emitter

    def _emit(
        self,
        event_type: str,
        player_id: Optional[str] = None,
        **data: Any,
    ) -> None:
        """
        Emit an event if emitter is configured.

        Args:
            event_type: Event type string (from EventType enum).
            player_id: ID of player who triggered the event.
            **data: Event-specific data fields.
        """
        if self._event_emitter is None:
            return

        # Import here to avoid circular dependency
        from models.events import GameEvent, EventType

        self._sequence_num += 1
        event = GameEvent(
            event_type=EventType(event_type),
            game_id=self.game_id,
            sequence_num=self._sequence_num,
            player_id=player_id,
            data={"room_code": self.room_code, **data},
        )
        self._event_emitter(event)

    # -------------------------------------------------------------------------
    # Player Management
    # -------------------------------------------------------------------------

    def add_player(self, player_id: str, name: str) -> Player:
        """
        Add a non-host player to a game that has not started.

        Args:
            player_id: Connection identifier of the joining player.
            name: Requested display name.

        Returns:
            The new Player.

        Raises:
            InvalidName, RoomFull, AlreadyStarted, NameTaken, AlreadyInRoom
        """
        name = _clean_name(name)
        if len(self.players) >= self.options.max_players:
            raise RoomFull(f"Room is full (max {self.options.max_players} players)")
        if self.started:
            raise AlreadyStarted()
        if any(p.name.casefold() == name.casefold() for p in self.players):
            raise NameTaken()
        if self.get_player(player_id):
            raise AlreadyInRoom()

        player = Player(id=player_id, name=name)
        self.players.append(player)
        self._add_chat(ChatEntry(f"{name} joined the game"))
        self._emit("player_joined", player_id=player_id, player_name=name)
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player who left or disconnected.

        Never fails: host status moves to the new first player, and the turn
        index is reconciled so it stays valid. Removing an earlier seat keeps
        the turn with the same player; removing the current player hands the
        turn to whoever now sits at that index. The departing hand goes to
        the bottom of the draw pile.

        Returns:
            The removed Player, or None if not found.
        """
        index = self._index_of(player_id)
        if index is None:
            return None

        removed = self.players.pop(index)
        # Departing hand goes under the draw pile so the deck stays whole
        self.draw_pile.extend(removed.hand)
        removed.hand = []
        self._add_chat(ChatEntry(f"{removed.name} left the game"))
        self._emit("player_left", player_id=player_id, player_name=removed.name)

        if not self.players:
            self.current_player_index = 0
            return removed

        if removed.is_host:
            new_host = self.players[0]
            new_host.is_host = True
            self._emit("host_changed", player_id=new_host.id, player_name=new_host.name)

        if index < self.current_player_index:
            self.current_player_index -= 1
        elif self.current_player_index >= len(self.players):
            self.current_player_index = 0

        return removed

    def get_player(self, player_id: str) -> Optional[Player]:
        """Find a player by their ID, or None."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def _index_of(self, player_id: str) -> Optional[int]:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return None

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.players:
            return self.players[self.current_player_index]
        return None

    def host(self) -> Optional[Player]:
        for player in self.players:
            if player.is_host:
                return player
        return None

    def is_empty(self) -> bool:
        return not self.players

    # -------------------------------------------------------------------------
    # Game Lifecycle
    # -------------------------------------------------------------------------

    def start_game(self, requester_id: str) -> None:
        """
        Deal and start the game.

        Raises:
            NotInRoom, NotHost, AlreadyStarted, NotEnoughPlayers
        """
        self._require_host(requester_id)
        if self.started:
            raise AlreadyStarted()
        if len(self.players) < MIN_PLAYERS:
            raise NotEnoughPlayers()

        self._deal()
        self._emit(
            "game_started",
            player_id=requester_id,
            player_order=[p.id for p in self.players],
            top_card=self.top_card.to_dict(),
        )

    def restart(self, requester_id: str) -> None:
        """
        Reset all per-round state and deal a fresh game, keeping the roster.

        Raises:
            NotInRoom, NotHost, NotEnoughPlayers
        """
        self._require_host(requester_id)
        if len(self.players) < MIN_PLAYERS:
            raise NotEnoughPlayers()

        self._deal()
        self._add_chat(ChatEntry("A new game has started"))
        self._emit(
            "game_restarted",
            player_id=requester_id,
            player_order=[p.id for p in self.players],
            top_card=self.top_card.to_dict(),
        )

    def _deal(self) -> None:
        """
        Shuffle a fresh deck, deal each player a hand, and turn up the first card.

        The opening card must be neither wild nor plus2; rejected cards go to
        the bottom of the draw pile until a valid one surfaces.
        """
        self.draw_pile = shuffle(build_deck(), self.rng)
        self.discard_pile = []
        self.current_player_index = 0
        self.direction = 1
        self.chosen_color = None
        self.pending_draw = 0
        self.must_resolve = False
        self.winner = None

        for player in self.players:
            player.hand = self.draw_pile[:self.options.hand_size]
            del self.draw_pile[:self.options.hand_size]

        while True:
            card = self.draw_pile.pop(0)
            if is_valid_opening_card(card):
                self.discard_pile.append(card)
                break
            self.draw_pile.append(card)

        self.started = True

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def play_card(
        self,
        player_id: str,
        card_id: str,
        chosen_color: Optional[str] = None,
    ) -> Card:
        """
        Play a card from the current player's hand.

        Args:
            player_id: ID of the acting player.
            card_id: ID of the card to play.
            chosen_color: Color to follow after a wild card.

        Returns:
            The played Card.

        Raises:
            NotStarted, GameOver, NotInRoom, NotYourTurn, CardNotInHand,
            IllegalPlay, InvalidColor
        """
        player = self._require_turn(player_id)
        card = player.find_card(card_id)
        if card is None:
            raise CardNotInHand()
        if not is_legal_play(card, self.top_card, self.chosen_color, self.pending_draw):
            if self.pending_draw > 0:
                raise IllegalPlay(
                    f"You must stack a +2/+4 or draw {self.pending_draw} cards"
                )
            raise IllegalPlay()
        color = Color.parse_choice(chosen_color)
        if card.is_wild and color is None:
            raise InvalidColor()

        player.hand.remove(card)
        self.discard_pile.append(card)
        self.chosen_color = None
        self.must_resolve = False

        if card.is_penalty:
            self.pending_draw += card.penalty
            if card.is_wild:
                self.chosen_color = color
            self.advance_turn()
            self._resolve_pending_draw()
        elif card.value == CardValue.CHANGE:
            self.chosen_color = color
            self.advance_turn()
        else:
            self.advance_turn()

        self._emit(
            "card_played",
            player_id=player_id,
            card=card.to_dict(),
            chosen_color=self.chosen_color.value if self.chosen_color else None,
            pending_draw=self.pending_draw,
            cards_left=len(player.hand),
        )

        if not player.hand:
            self.winner = player.name
            # A stack left for the next player is void once the game is over
            self.pending_draw = 0
            self.must_resolve = False
            self._add_chat(ChatEntry(f"🎉 {player.name} wins the game!"))
            self._emit("game_won", player_id=player_id, player_name=player.name)

        return card

    def _resolve_pending_draw(self) -> None:
        """
        Hand the pending draw to the new current player.

        With stacking enabled and a penalty card in hand, the player must
        choose: stack or accept. Otherwise they draw the full amount now and
        their turn is skipped.
        """
        target = self.current_player()
        if self.options.stacking and has_penalty_card(target.hand):
            self.must_resolve = True
            return

        amount = self.pending_draw
        drawn = self._draw_cards(target, amount)
        self.pending_draw = 0
        self._emit(
            "penalty_drawn",
            player_id=target.id,
            amount=amount,
            cards=[c.to_dict() for c in drawn],
            forced=True,
        )
        self.advance_turn()

    def draw_card(self, player_id: str) -> Optional[Card]:
        """
        Draw one card as a normal turn action, then pass the turn.

        Returns:
            The drawn Card (None only if both piles are exhausted).

        Raises:
            NotStarted, GameOver, NotInRoom, NotYourTurn, PendingDrawActive
        """
        player = self._require_turn(player_id)
        if self.pending_draw > 0:
            raise PendingDrawActive()

        card = self._draw_one(player)
        self.advance_turn()
        self._emit(
            "card_drawn",
            player_id=player_id,
            card=card.to_dict() if card else None,
        )
        return card

    def accept_pending_draw(self, player_id: str) -> list[Card]:
        """
        Accept the pending draw penalty instead of stacking.

        Returns:
            Cards drawn; empty if there was nothing pending (no-op).

        Raises:
            NotStarted, GameOver, NotInRoom, NotYourTurn
        """
        player = self._require_turn(player_id)
        if self.pending_draw == 0:
            return []

        amount = self.pending_draw
        drawn = self._draw_cards(player, amount)
        self.pending_draw = 0
        self.must_resolve = False
        self._emit(
            "penalty_drawn",
            player_id=player_id,
            amount=amount,
            cards=[c.to_dict() for c in drawn],
            forced=False,
        )
        self.advance_turn()
        return drawn

    def advance_turn(self) -> None:
        """Move the turn one seat in the current direction."""
        self.current_player_index = step_index(
            self.current_player_index, self.direction, len(self.players)
        )

    def say_uno(self, player_id: str) -> Player:
        """
        Announce UNO. Cosmetic: a missed call carries no penalty.

        Raises:
            NotInRoom, CannotCallUno
        """
        player = self._require_member(player_id)
        if not self.started or self.winner or len(player.hand) != 1:
            raise CannotCallUno()

        self._add_chat(ChatEntry(f"{player.name} says UNO!"))
        self._emit("uno_called", player_id=player_id, player_name=player.name)
        return player

    def add_chat_message(self, player_id: str, text: str) -> Optional[ChatEntry]:
        """
        Append a player's chat message.

        Blank messages are ignored; long ones are truncated.

        Returns:
            The new ChatEntry, or None if the message was blank.

        Raises:
            NotInRoom
        """
        player = self._require_member(player_id)
        text = text.strip()[:CHAT_MESSAGE_MAX_LENGTH] if isinstance(text, str) else ""
        if not text:
            return None

        entry = ChatEntry(text, author=player.name)
        self._add_chat(entry)
        self._emit("chat_message", player_id=player_id, text=text)
        return entry

    # -------------------------------------------------------------------------
    # Piles (Internal)
    # -------------------------------------------------------------------------

    def _draw_one(self, player: Player) -> Optional[Card]:
        """
        Move the front card of the draw pile into a player's hand.

        Refills the draw pile from the discard pile first if it is empty.
        """
        if not self.draw_pile:
            self._reshuffle_discard_pile()
        if not self.draw_pile:
            return None
        card = self.draw_pile.pop(0)
        player.hand.append(card)
        return card

    def _draw_cards(self, player: Player, count: int) -> list[Card]:
        drawn = []
        for _ in range(count):
            card = self._draw_one(player)
            if card is None:
                break
            drawn.append(card)
        return drawn

    def _reshuffle_discard_pile(self) -> None:
        """
        Reshuffle the discard pile into a new draw pile.

        Keeps the top discard card in place as the only discard.
        """
        if len(self.discard_pile) <= 1:
            return

        top_card = self.discard_pile[-1]
        self.draw_pile = shuffle(self.discard_pile[:-1], self.rng)
        self.discard_pile = [top_card]

    def _add_chat(self, entry: ChatEntry) -> None:
        self.chat.append(entry)
        if len(self.chat) > CHAT_HISTORY_LIMIT:
            del self.chat[:-CHAT_HISTORY_LIMIT]

    # -------------------------------------------------------------------------
    # Validation (Internal)
    # -------------------------------------------------------------------------

    def _require_member(self, player_id: str) -> Player:
        player = self.get_player(player_id)
        if player is None:
            raise NotInRoom()
        return player

    def _require_host(self, player_id: str) -> Player:
        player = self._require_member(player_id)
        if not player.is_host:
            raise NotHost()
        return player

    def _require_turn(self, player_id: str) -> Player:
        """Check the game is in progress and it is this player's turn."""
        if not self.started:
            raise NotStarted()
        if self.winner:
            raise GameOver(f"{self.winner} has already won")
        player = self._require_member(player_id)
        if self.current_player() is not player:
            raise NotYourTurn()
        return player

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    @property
    def top_card(self) -> Optional[Card]:
        """Top card of the discard pile (if any)."""
        if self.discard_pile:
            return self.discard_pile[-1]
        return None

    @property
    def in_progress(self) -> bool:
        return self.started and self.winner is None

    def total_cards(self) -> int:
        """Cards across draw pile, discard pile and all hands."""
        return (
            len(self.draw_pile)
            + len(self.discard_pile)
            + sum(len(p.hand) for p in self.players)
        )

    def cards_accounted_for(self) -> bool:
        """Whether every card of the deck is in exactly one pile or hand."""
        return not self.started or self.total_cards() == DECK_SIZE


def _clean_name(name: Any) -> str:
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise InvalidName()
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidName(f"Names can be at most {MAX_NAME_LENGTH} characters")
    return name
