"""
Pytest fixtures for engine and transport tests.
"""

import random

import pytest

from partycard_engine.deck import create_deck
from partycard_engine.engine import GameEngine
from partycard_engine.models import Player


def make_engine(player_count: int = 3, seed: int = 42, **kwargs) -> GameEngine:
    """Build a lobby engine with players p1..pN (p1 hosts)."""
    engine = GameEngine("ROOM", Player(id="p1", name="Player 1"), rng=random.Random(seed), **kwargs)
    for i in range(2, player_count + 1):
        engine.add_player(Player(id=f"p{i}", name=f"Player {i}"))
    return engine


def stack_deck(engine: GameEngine, card_ids):
    """Arrange the draw pile so ``card_ids`` come out first, in order."""
    cards = {card.id: card for card in create_deck()}
    first = [cards.pop(card_id) for card_id in card_ids]
    engine.state.draw_pile = list(reversed(first + list(cards.values())))


@pytest.fixture
def lobby_engine() -> GameEngine:
    """A three-player room that has not started yet."""
    return make_engine(3)


@pytest.fixture
def started_engine() -> GameEngine:
    """A three-player room in PLAYING, p1 to draw."""
    engine = make_engine(3)
    engine.start_game()
    return engine
