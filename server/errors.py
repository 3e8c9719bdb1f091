"""
Request errors for the UNO game server.

Every error here is request-local and recoverable: it is reported only to
the player who sent the request, and the operation that raised it has not
mutated any state. Handlers catch GameError and send ``to_dict()`` back
over the requester's websocket.
"""


class GameError(Exception):
    """Base class for all rejected game requests."""

    kind = "GameError"
    default_message = "Request rejected"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Error payload for the requesting client."""
        return {"type": "error", "kind": self.kind, "message": self.message}


class RoomNotFound(GameError):
    kind = "RoomNotFound"
    default_message = "Room not found"


class RoomFull(GameError):
    kind = "RoomFull"
    default_message = "Room is full"


class AlreadyStarted(GameError):
    kind = "AlreadyStarted"
    default_message = "Game already in progress"


class NameTaken(GameError):
    kind = "NameTaken"
    default_message = "That name is already taken in this room"


class InvalidName(GameError):
    kind = "InvalidName"
    default_message = "Please choose a name"


class NotHost(GameError):
    kind = "NotHost"
    default_message = "Only the host can do that"


class NotEnoughPlayers(GameError):
    kind = "NotEnoughPlayers"
    default_message = "Need at least 2 players"


class NotStarted(GameError):
    kind = "NotStarted"
    default_message = "The game has not started yet"


class GameOver(GameError):
    kind = "GameOver"
    default_message = "The game is over"


class NotYourTurn(GameError):
    kind = "NotYourTurn"
    default_message = "It's not your turn"


class CardNotInHand(GameError):
    kind = "CardNotInHand"
    default_message = "You don't have that card"


class IllegalPlay(GameError):
    kind = "IllegalPlay"
    default_message = "You can't play that card"


class InvalidColor(GameError):
    kind = "InvalidColor"
    default_message = "Choose red, blue, green or yellow"


class PendingDrawActive(GameError):
    kind = "PendingDrawActive"
    default_message = "Stack a penalty card or accept the pending draw"


class CannotCallUno(GameError):
    kind = "CannotCallUno"
    default_message = "You can only call UNO with one card left"


class NotInRoom(GameError):
    kind = "NotInRoom"
    default_message = "You are not in that room"


class AlreadyInRoom(GameError):
    kind = "AlreadyInRoom"
    default_message = "Leave your current room first"
