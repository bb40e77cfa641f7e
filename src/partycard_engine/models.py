"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional

from .constants import (
    PHASE_LOBBY, PENDING_NONE, DIRECTION_CLOCKWISE, card_id_for, empty_rank_counts
)


@dataclass(frozen=True)
class Card:
    id: str
    suit: str  # SPADES|HEARTS|DIAMONDS|CLUBS
    rank: str  # 10|J|Q|K|A

    @classmethod
    def of(cls, rank: str, suit: str) -> 'Card':
        return cls(id=card_id_for(rank, suit), suit=suit, rank=rank)

    @property
    def label(self) -> str:
        return f"{self.rank} of {self.suit}"


@dataclass
class Player:
    id: str
    name: str
    is_host: bool = False
    connected: bool = True
    shields: List[Card] = field(default_factory=list)  # retained Q cards
    sips: int = 0

    @property
    def shield_count(self) -> int:
        return len(self.shields)


@dataclass
class GameState:
    room_id: str
    phase: str = PHASE_LOBBY  # LOBBY|PLAYING|GAME_OVER
    players: List[Player] = field(default_factory=list)  # join order is turn order
    current_turn_player_id: Optional[str] = None
    direction: int = DIRECTION_CLOCKWISE
    draw_pile: List[Card] = field(default_factory=list)  # last element is the top
    discard_pile: List[Card] = field(default_factory=list)  # last element is visible
    aces_drawn_count: int = 0
    rank_counts: Dict[str, int] = field(default_factory=empty_rank_counts)
    pending_action: str = PENDING_NONE
    action_target_id: Optional[str] = None
    last_action_description: str = 'Waiting for players...'

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return -1

    def player_name(self, player_id: Optional[str]) -> str:
        player = self.get_player(player_id) if player_id else None
        return player.name if player else 'Unknown'
