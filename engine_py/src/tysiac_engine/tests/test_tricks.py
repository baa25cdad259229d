"""
Trick resolution, suit following and meld detection.
"""

from tysiac_engine.comparator import (
    beats, compare_ranks, is_higher_rank, resolve_trick, trick_points
)
from tysiac_engine.melds import find_melds, has_marriage, total_meld_points
from tysiac_engine.models import TrickPlay
from tysiac_engine.shuffle import parse_card
from tysiac_engine.validate import can_play_card


def trick(*card_ids):
    return [TrickPlay(player_id=f"p{i}", card=parse_card(cid), position=i)
            for i, cid in enumerate(card_ids)]


def hand(*card_ids):
    return [parse_card(cid) for cid in card_ids]


def test_rank_order():
    """A > 10 > K > Q > J > 9."""
    assert is_higher_rank("A", "10")
    assert is_higher_rank("10", "K")
    assert is_higher_rank("K", "Q")
    assert is_higher_rank("Q", "J")
    assert is_higher_rank("J", "9")
    assert compare_ranks("Q", "Q") == 0


def test_highest_lead_suit_wins_without_trump():
    """Off-suit cards never win when there is no trump."""
    plays = trick("9_hearts", "A_hearts", "K_clubs")
    assert resolve_trick(plays, None, "hearts") == "p1"


def test_any_trump_beats_non_trump():
    """The lowest trump takes a trick led with the Ace."""
    plays = trick("A_hearts", "9_spades", "K_hearts")
    assert resolve_trick(plays, "spades", "hearts") == "p1"


def test_queen_beats_jack():
    """Queen ranks above Jack."""
    plays = trick("J_diamonds", "Q_diamonds")
    assert resolve_trick(plays, None, "diamonds") == "p1"


def test_higher_trump_wins():
    """Two trumps compare by rank."""
    plays = trick("A_hearts", "9_spades", "10_spades", "K_hearts")
    assert resolve_trick(plays, "spades") == "p2"


def test_trump_lead():
    """A trump lead is still beaten only by a higher trump."""
    plays = trick("J_clubs", "A_hearts", "Q_clubs")
    assert resolve_trick(plays, "clubs") == "p2"
    assert not beats(parse_card("A_hearts"), parse_card("J_clubs"), "clubs", "clubs")


def test_trick_points():
    """Trick is worth the fixed value of its cards."""
    assert trick_points(trick("A_hearts", "10_hearts", "K_hearts", "9_hearts")) == 25


def test_must_follow_suit():
    """Holding the lead suit forces it."""
    cards = hand("9_hearts", "K_clubs")
    assert can_play_card(cards[0], cards, "hearts")
    assert not can_play_card(cards[1], cards, "hearts")


def test_free_play_without_lead_suit():
    """Without the lead suit any card is allowed, trump is not forced."""
    cards = hand("K_clubs", "9_spades")
    assert can_play_card(cards[0], cards, "hearts", "spades")
    assert can_play_card(cards[1], cards, "hearts", "spades")


def test_leading_is_free():
    """Any card may lead."""
    cards = hand("K_clubs", "9_spades")
    assert all(can_play_card(card, cards, None) for card in cards)


def test_meld_detection():
    """King and Queen of a suit form a marriage."""
    melds = find_melds(hand("K_clubs", "Q_clubs", "A_hearts"))
    assert [(m.suit, m.points) for m in melds] == [("clubs", 60)]

    assert not has_marriage(hand("K_clubs", "A_clubs"), "clubs")
    assert find_melds(hand("K_clubs", "Q_hearts")) == []


def test_meld_values():
    """Hearts 100, diamonds 80, clubs 60, spades 40."""
    cards = hand("K_hearts", "Q_hearts", "K_diamonds", "Q_diamonds",
                 "K_clubs", "Q_clubs", "K_spades", "Q_spades")
    melds = find_melds(cards)
    assert {m.suit: m.points for m in melds} == {
        "hearts": 100, "diamonds": 80, "clubs": 60, "spades": 40
    }
    assert total_meld_points(melds) == 280
