"""Room registry: creates, finds and discards per-room game engines"""

import logging
import random
import threading
import uuid
from typing import Dict, Optional

from .constants import ROOM_CODE_ALPHABET
from .engine import GameEngine
from .errors import GameError, INTERNAL_ERROR, ROOM_NOT_FOUND
from .models import Player
from .rules import RuleConfig, default_rules

logger = logging.getLogger(__name__)


def new_player(name: str) -> Player:
    return Player(id=str(uuid.uuid4())[:8], name=name)


class RoomRegistry:
    """
    Owns the room table.

    The registry lock only guards the table itself; each engine keeps its
    own lock, always taken after the registry's.
    """

    def __init__(self, rules: RuleConfig = default_rules, rng: Optional[random.Random] = None):
        self.rules = rules
        self.rng = rng or random.Random()
        self.rooms: Dict[str, GameEngine] = {}
        self._lock = threading.Lock()

    def _generate_room_id(self) -> str:
        return ''.join(
            self.rng.choice(ROOM_CODE_ALPHABET) for _ in range(self.rules.room_code_length)
        )

    def create_room(self, host: Player) -> str:
        """Create a room in LOBBY with ``host`` as its only player."""
        with self._lock:
            for _ in range(self.rules.room_code_retries):
                room_id = self._generate_room_id()
                if room_id not in self.rooms:
                    break
            else:
                logger.error(f"No free room code after {self.rules.room_code_retries} attempts")
                raise GameError(INTERNAL_ERROR, "Could not allocate a room code")

            self.rooms[room_id] = GameEngine(room_id, host, rules=self.rules)
            logger.info(f"Room {room_id} created by {host.name} ({host.id})")
            return room_id

    def get_engine(self, room_id: str) -> Optional[GameEngine]:
        return self.rooms.get(normalize_room_id(room_id))

    def require_engine(self, room_id: str) -> GameEngine:
        engine = self.get_engine(room_id)
        if engine is None:
            raise GameError(ROOM_NOT_FOUND, f"Room {room_id} not found")
        return engine

    def join_room(self, room_id: str, player: Player) -> GameEngine:
        """
        Seat ``player`` in an existing room.

        Raises:
            GameError: ROOM_NOT_FOUND if there is no such room,
                GAME_ALREADY_STARTED once the room has left the lobby
        """
        with self._lock:
            engine = self.require_engine(room_id)
            engine.add_player(player)
            return engine

    def remove_player(self, room_id: str, player_id: str) -> Optional[Player]:
        """Remove a player and drop the room once nobody is left."""
        with self._lock:
            engine = self.get_engine(room_id)
            if engine is None:
                return None
            removed = engine.remove_player(player_id)
            if engine.is_empty:
                del self.rooms[engine.room_id]
                logger.info(f"Room {engine.room_id} deleted (empty)")
            return removed

    def discard_if_abandoned(self, room_id: str) -> bool:
        """Drop a room once none of its players has a live connection.

        Seats are never resumed, so such a room can no longer be reached.
        """
        with self._lock:
            engine = self.get_engine(room_id)
            if engine is None or engine.has_connected_players:
                return False
            del self.rooms[engine.room_id]
            logger.info(f"Room {engine.room_id} deleted (all players disconnected)")
            return True

    def __len__(self) -> int:
        return len(self.rooms)


def normalize_room_id(room_id: str) -> str:
    return room_id.strip().upper()
