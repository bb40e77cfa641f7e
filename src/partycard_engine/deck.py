"""
Deck construction, shuffling and integrity utilities.
"""

import random
from typing import List, Optional

from .constants import DECK_SIZE, RANKS, SUITS, all_card_ids
from .models import Card, GameState


def create_deck() -> List[Card]:
    """Create the fixed 20-card deck, one card per (suit, rank)."""
    deck = []
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card.of(rank, suit))
    return deck


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle a deck uniformly at random.

    Args:
        deck: Cards to shuffle
        rng: Random source; a seeded ``random.Random`` gives a
            deterministic order

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()
    (rng or random).shuffle(deck_copy)
    return deck_copy


def reshuffle_discard(state: GameState, rng: Optional[random.Random] = None) -> Card:
    """
    Rebuild the draw pile from the discard pile.

    The top discard card stays where it is; everything under it is
    shuffled into a new draw pile.

    Args:
        state: Room state whose draw pile is empty
        rng: Random source for the shuffle

    Returns:
        The retained top card

    Raises:
        ValueError: If the discard pile has one card or fewer
    """
    if len(state.discard_pile) <= 1:
        raise ValueError(
            f"Cannot reshuffle: draw pile has {len(state.draw_pile)} cards, "
            f"discard pile has {len(state.discard_pile)}"
        )
    top_card = state.discard_pile[-1]
    state.draw_pile = shuffle_deck(state.discard_pile[:-1], rng)
    state.discard_pile = [top_card]
    return top_card


def held_cards(state: GameState) -> List[Card]:
    """All shield cards currently held by players."""
    cards = []
    for player in state.players:
        cards.extend(player.shields)
    return cards


def check_conservation(state: GameState) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Draw pile, discard pile and held shields together must hold exactly
    the 20 fixed card ids.
    """
    all_ids = [card.id for card in state.draw_pile]
    all_ids.extend(card.id for card in state.discard_pile)
    all_ids.extend(card.id for card in held_cards(state))

    return (
        len(all_ids) == DECK_SIZE and
        set(all_ids) == set(all_card_ids())
    )
