"""
Card shuffling and dealing utilities.
"""

import random
from collections import Counter
from typing import List, Optional, Tuple, Union

from .constants import DEAL_LAYOUT, DECK_SIZE, RANKS, SUITS
from .models import Card, RoomState

Seed = Union[int, random.Random, None]


def create_deck() -> List[Card]:
    """Create the ordered 24-card deck (9 through Ace in four suits)."""
    return [Card(suit=suit, rank=rank) for suit in SUITS for rank in RANKS]


def parse_card(card_id: str) -> Card:
    """Turn a card id such as ``A_hearts`` back into a Card."""
    rank, _, suit = card_id.partition('_')
    if rank not in RANKS or suit not in SUITS:
        raise ValueError(f"Unknown card id: {card_id}")
    return Card(suit=suit, rank=rank)


def shuffle_deck(deck: List[Card], seed: Seed = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    random.Random.shuffle is a Fisher-Yates shuffle, so every permutation
    is equally likely.

    Args:
        deck: List of cards to shuffle
        seed: Optional int seed or Random instance

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if isinstance(seed, random.Random):
        seed.shuffle(deck_copy)
    elif seed is not None:
        random.Random(seed).shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def deal_layout(player_count: int, with_musik: bool) -> Tuple[int, int]:
    """Cards per seat and musik size for a table."""
    try:
        return DEAL_LAYOUT[(player_count, with_musik)]
    except KeyError:
        raise ValueError(f"Unsupported player count: {player_count}")


def deal_cards(player_count: int, with_musik: bool,
               seed: Seed = None) -> Tuple[List[List[Card]], List[Card]]:
    """
    Shuffle a fresh deck and split it into hands and a musik.

    The musik flag only matters for four players: three players always
    get a musik, two players never do.

    Args:
        player_count: Number of seats (2, 3 or 4)
        with_musik: Whether a four-player table plays with a musik
        seed: Optional seed for deterministic shuffling

    Returns:
        Tuple of (hands indexed by seat, musik cards)
    """
    per_seat, musik_size = deal_layout(player_count, with_musik)
    deck = shuffle_deck(create_deck(), seed)

    hands: List[List[Card]] = [[] for _ in range(player_count)]

    # Deal cards round-robin style
    dealt = per_seat * player_count
    for i, card in enumerate(deck[:dealt]):
        hands[i % player_count].append(card)

    musik = deck[dealt:dealt + musik_size]
    return hands, musik


def cards_in_play(state: RoomState) -> List[Card]:
    """Every card currently accounted for in a room's round."""
    cards: List[Card] = []
    for player in state.players.values():
        cards.extend(player.hand)
        for trick in player.tricks_won:
            cards.extend(play.card for play in trick)
    if state.musik:
        cards.extend(state.musik.cards)
    cards.extend(play.card for play in state.current_trick)
    return cards


def validate_deck_integrity(state: RoomState) -> bool:
    """
    Validate that a dealt room still holds exactly the 24-card deck.

    Args:
        state: Room state during a round

    Returns:
        True if every card is present exactly once
    """
    cards = cards_in_play(state)
    if len(cards) != DECK_SIZE:
        return False
    return Counter(cards) == Counter(create_deck())


def sort_hand(hand: List[Card]) -> List[Card]:
    """Sort a hand by suit, then from the highest rank down."""
    return sorted(hand, key=lambda card: (SUITS.index(card.suit), RANKS.index(card.rank)))
