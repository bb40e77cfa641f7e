# src/partycard_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class InvariantViolation(GameError):
    """Internal state is corrupted; never a user mistake."""
    def __init__(self, message: str):
        super().__init__(INTERNAL_ERROR, message)


# Specific error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
ROOM_FULL = "ROOM_FULL"
GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
PENDING_ACTION_UNRESOLVED = "PENDING_ACTION_UNRESOLVED"
INVALID_EVENT = "INVALID_EVENT"
NOT_IN_ROOM = "NOT_IN_ROOM"
INTERNAL_ERROR = "INTERNAL_ERROR"

