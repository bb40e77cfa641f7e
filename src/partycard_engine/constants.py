"""Game constants and utilities"""

from typing import List, Tuple

SUITS = ['SPADES', 'HEARTS', 'DIAMONDS', 'CLUBS']
RANKS = ['10', 'J', 'Q', 'K', 'A']

DECK_SIZE = len(SUITS) * len(RANKS)
FIRE_RULE_COUNT = 4
ACES_TO_END = 4

PHASE_LOBBY = 'LOBBY'
PHASE_PLAYING = 'PLAYING'
PHASE_GAME_OVER = 'GAME_OVER'

PENDING_NONE = 'NONE'
PENDING_TARGET_SELECTION = 'WAITING_FOR_TARGET_SELECTION'
PENDING_Q_DECISION = 'WAITING_FOR_Q_DECISION'

DIRECTION_CLOCKWISE = 1
DIRECTION_COUNTER_CLOCKWISE = -1

ROOM_CODE_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'


def card_id_for(rank: str, suit: str) -> str:
    return f"{rank}{suit[0]}"


def parse_card_id(card_id: str) -> Tuple[str, str]:
    """Split a card id like '10S' or 'QH' into (rank, suit)."""
    rank, initial = card_id[:-1], card_id[-1]
    if rank not in RANKS:
        raise ValueError(f"Unknown rank in card id: {card_id}")
    for suit in SUITS:
        if suit[0] == initial:
            return rank, suit
    raise ValueError(f"Unknown suit in card id: {card_id}")


def all_card_ids() -> List[str]:
    return [card_id_for(rank, suit) for suit in SUITS for rank in RANKS]


def empty_rank_counts() -> dict:
    return {rank: 0 for rank in RANKS}
