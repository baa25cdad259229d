"""
Auction and musik tests.
"""

import pytest
from tysiac_engine.constants import PHASE_BIDDING, PHASE_PLAYING
from tysiac_engine.engine import TysiacEngine
from tysiac_engine.errors import IllegalMoveError, TurnError, ValidationError
from tysiac_engine.rules import create_rules, default_rules
from tysiac_engine.shuffle import validate_deck_integrity

NAMES = ["Alice", "Bob", "Carol", "Dave"]


def started_room(players=4, with_musik=True, seed=7):
    engine = TysiacEngine(seed=1)
    room = engine.create_room("p0", "Table", NAMES[0], with_musik=with_musik,
                              max_players=players, game_mode="ffa")
    for i in range(1, players):
        engine.join_room(room.id, f"p{i}", NAMES[i])
    room = engine.start_game(room.id, "p0", seed=seed)
    return engine, room


def test_bid_validation_rules():
    """Bids step by 10 from 100 up to 360 and must beat the standing bid."""
    rules = default_rules
    assert rules.validate_bid(100, 100, has_bid=False)
    assert not rules.validate_bid(90, 100, has_bid=False)
    assert not rules.validate_bid(105, 100, has_bid=False)
    assert not rules.validate_bid(370, 100, has_bid=False)
    assert rules.validate_bid(130, 120, has_bid=True)
    assert not rules.validate_bid(120, 120, has_bid=True)


def test_rule_overrides():
    """create_rules keeps the defaults it does not override."""
    rules = create_rules(winning_score=500)
    assert rules.winning_score == 500
    assert rules.floor_bid == 100
    with pytest.raises(ValueError):
        create_rules(max_bid=50)


def test_auction_opens_at_floor():
    """A new round starts in bidding at 100 with no bid winner."""
    engine, room = started_room()
    assert room.phase == PHASE_BIDDING
    assert room.current_bid == 100
    assert room.bid_winner_id is None
    assert room.current_player_id is not None
    assert validate_deck_integrity(room)


def test_everyone_passes():
    """When all four pass without a bid the first bidder takes the contract at 100."""
    engine, room = started_room()
    first = room.current_player_id

    for _ in range(4):
        room = engine.pass_bid(room.id, room.current_player_id)

    assert room.phase == PHASE_PLAYING
    assert room.bid_winner_id == first
    assert room.current_bid == 100
    assert room.current_player_id == first


def test_single_bid_then_passes():
    """X bids 120, everyone else passes, X wins at 120."""
    engine, room = started_room()
    bidder = room.current_player_id

    room = engine.bid(room.id, bidder, 120)
    assert room.phase == PHASE_BIDDING
    for _ in range(3):
        assert room.current_player_id != bidder
        room = engine.pass_bid(room.id, room.current_player_id)

    assert room.phase == PHASE_PLAYING
    assert room.bid_winner_id == bidder
    assert room.current_bid == 120


def test_passed_players_are_skipped():
    """Players who passed do not get another turn in the auction."""
    engine, room = started_room()
    first = room.current_player_id

    room = engine.pass_bid(room.id, first)
    second = room.current_player_id
    room = engine.bid(room.id, second, 110)
    third = room.current_player_id
    room = engine.bid(room.id, third, 120)
    fourth = room.current_player_id
    room = engine.pass_bid(room.id, fourth)

    # Skips the first player, back to the second
    assert room.current_player_id == second
    room = engine.pass_bid(room.id, second)
    assert room.bid_winner_id == third
    assert room.current_bid == 120


def test_bid_must_raise():
    """Equal or lower bids are rejected."""
    engine, room = started_room()
    room = engine.bid(room.id, room.current_player_id, 150)
    with pytest.raises(ValidationError):
        engine.bid(room.id, room.current_player_id, 150)
    with pytest.raises(ValidationError):
        engine.bid(room.id, room.current_player_id, 155)


def test_bid_out_of_turn():
    """Only the current player may bid or pass."""
    engine, room = started_room()
    other = next(pid for pid in room.players if pid != room.current_player_id)
    with pytest.raises(TurnError):
        engine.bid(room.id, other, 120)
    with pytest.raises(TurnError):
        engine.pass_bid(room.id, other)


def test_musik_granted_to_bid_winner():
    """The bid winner takes the musik and owes the same number of cards back."""
    engine, room = started_room()
    musik_ids = {card.id for card in room.musik.cards}
    winner = room.current_player_id
    room = engine.bid(room.id, winner, 100)
    for _ in range(3):
        room = engine.pass_bid(room.id, room.current_player_id)

    hand_ids = {card.id for card in room.players[winner].hand}
    assert musik_ids <= hand_ids
    assert len(hand_ids) == 9
    assert room.musik.revealed
    assert room.musik.cards == []
    assert room.pending_discard == 4
    assert validate_deck_integrity(room)

    # No play until the discard is done
    with pytest.raises(ValidationError):
        engine.play_card(room.id, winner, room.players[winner].hand[0].id)

    discard = [card.id for card in room.players[winner].hand[:4]]
    room = engine.discard_cards(room.id, winner, discard)
    assert room.pending_discard == 0
    assert len(room.players[winner].hand) == 5
    assert {card.id for card in room.musik.cards} == set(discard)
    assert validate_deck_integrity(room)


def test_discard_validation():
    """Wrong count, duplicates, foreign cards and other players are refused."""
    engine, room = started_room()
    winner = room.current_player_id
    room = engine.bid(room.id, winner, 100)
    for _ in range(3):
        room = engine.pass_bid(room.id, room.current_player_id)

    hand = [card.id for card in room.players[winner].hand]
    other = next(pid for pid in room.players if pid != winner)
    foreign = room.players[other].hand[0].id

    with pytest.raises(ValidationError):
        engine.discard_cards(room.id, winner, hand[:3])
    with pytest.raises(ValidationError):
        engine.discard_cards(room.id, winner, [hand[0]] * 4)
    with pytest.raises(IllegalMoveError):
        engine.discard_cards(room.id, winner, hand[:3] + [foreign])
    with pytest.raises(TurnError):
        engine.discard_cards(room.id, other, [c.id for c in room.players[other].hand[:4]])


def test_no_musik_for_four_without_musik():
    """Four players without musik hold six cards and play straight away."""
    engine, room = started_room(with_musik=False)
    assert room.musik is None
    assert all(len(p.hand) == 6 for p in room.players.values())

    for _ in range(4):
        room = engine.pass_bid(room.id, room.current_player_id)
    assert room.phase == PHASE_PLAYING
    assert room.pending_discard == 0


def test_three_player_musik():
    """Three players always get a three-card musik."""
    engine, room = started_room(players=3, with_musik=False)
    assert len(room.musik.cards) == 3
    room = engine.bid(room.id, room.current_player_id, 100)
    for _ in range(2):
        room = engine.pass_bid(room.id, room.current_player_id)
    assert room.pending_discard == 3
    assert len(room.players[room.bid_winner_id].hand) == 10
