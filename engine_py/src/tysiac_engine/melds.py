"""
Marriage (King + Queen) detection.
"""

from typing import Iterable, List

from .constants import MELD_POINTS, SUITS
from .models import Card, Meld


def has_marriage(hand: Iterable[Card], suit: str) -> bool:
    """Check if a hand holds both the King and the Queen of a suit."""
    ranks = {card.rank for card in hand if card.suit == suit}
    return 'K' in ranks and 'Q' in ranks


def meld_points(suit: str) -> int:
    return MELD_POINTS[suit]


def find_melds(hand: List[Card]) -> List[Meld]:
    """
    Find every suit the hand could declare as a marriage.

    Args:
        hand: Cards held by a player

    Returns:
        One Meld per suit with both K and Q present, in suit order
    """
    return [Meld(suit=suit, points=meld_points(suit)) for suit in SUITS if has_marriage(hand, suit)]


def total_meld_points(melds: Iterable[Meld]) -> int:
    return sum(meld.points for meld in melds)
