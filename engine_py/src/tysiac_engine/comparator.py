"""
Card comparison and trick resolution.
"""

from typing import Iterable, Optional, Sequence

from .constants import RANKS
from .models import Card, TrickPlay


def get_rank_index(rank: str) -> int:
    """Get the index of a rank; lower index means a stronger card."""
    try:
        return RANKS.index(rank)
    except ValueError:
        raise ValueError(f"Unknown rank: {rank}")


def compare_ranks(rank_a: str, rank_b: str) -> int:
    """
    Compare two ranks.

    Returns:
        Positive if rank_a beats rank_b, negative if it loses, 0 if equal
    """
    return get_rank_index(rank_b) - get_rank_index(rank_a)


def is_higher_rank(rank_a: str, rank_b: str) -> bool:
    """Check if rank_a is higher than rank_b."""
    return compare_ranks(rank_a, rank_b) > 0


def beats(challenger: Card, best: Card, lead_suit: str, trump: Optional[str]) -> bool:
    """
    Decide whether a challenger takes the lead from the current best card.

    Args:
        challenger: Card being compared
        best: Card currently winning the trick
        lead_suit: Suit of the first card of the trick
        trump: Current trump suit, if any

    Returns:
        True if the challenger becomes the winning card
    """
    if trump:
        if challenger.suit == trump and best.suit != trump:
            return True
        if best.suit == trump and challenger.suit != trump:
            return False

    if challenger.suit == best.suit:
        return is_higher_rank(challenger.rank, best.rank)

    return challenger.suit == lead_suit and best.suit != trump


def winning_play(plays: Sequence[TrickPlay], trump: Optional[str],
                 lead_suit: Optional[str] = None) -> TrickPlay:
    """Scan a trick once, keeping the running best play."""
    if not plays:
        raise ValueError("Cannot resolve an empty trick")

    lead_suit = lead_suit or plays[0].card.suit
    best = plays[0]
    for play in plays[1:]:
        if beats(play.card, best.card, lead_suit, trump):
            best = play
    return best


def resolve_trick(plays: Sequence[TrickPlay], trump: Optional[str],
                  lead_suit: Optional[str] = None) -> str:
    """Return the player_id that wins the trick."""
    return winning_play(plays, trump, lead_suit).player_id


def card_points(cards: Iterable[Card]) -> int:
    """Sum the fixed point value of each card."""
    return sum(card.points for card in cards)


def trick_points(plays: Iterable[TrickPlay]) -> int:
    return card_points(play.card for play in plays)
