"""
Round settlement, game end and tie handling.
"""

import pytest
from tysiac_engine.constants import (
    PHASE_BIDDING, PHASE_FINISHED, PHASE_PLAYING, STATUS_FINISHED, STATUS_PLAYING
)
from tysiac_engine.engine import (
    TysiacEngine, bid, create_room, join_room, play_card, select_team, start_game
)
from tysiac_engine.errors import ValidationError
from tysiac_engine.models import Meld, Musik
from tysiac_engine.scoring import pick_winner, round_contributions, settle_round
from tysiac_engine.shuffle import parse_card


def emptied_round(players=2):
    """A started ffa room whose hands have all been played out."""
    state = create_room("room", "CODE", "Table", "Alice", "p0", max_players=players)
    for i in range(1, players):
        state = join_room(state, f"p{i}", f"Player {i}")
    state = start_game(state, "p0", seed=4)
    for player in state.players.values():
        player.hand = []
    state.musik = None
    state.phase = PHASE_PLAYING
    state.bid_winner_id = "p0"
    return state


def test_pick_winner():
    """Strictly highest total at or above the threshold wins."""
    assert pick_winner({"a": 990, "b": 500}, 1000) is None
    assert pick_winner({"a": 1010, "b": 500}, 1000) == "a"
    assert pick_winner({"a": 1010, "b": 1040}, 1000) == "b"


def test_exact_tie_plays_on():
    """Equal totals over the threshold do not end the game."""
    assert pick_winner({"a": 1020, "b": 1020}, 1000) is None
    assert pick_winner({"a": 1020, "b": 1020, "c": 1030}, 1000) == "c"


def test_contributions_include_melds():
    """Round contribution is card points plus meld points."""
    state = emptied_round()
    state.players["p0"].round_score = 70
    state.players["p1"].round_score = 50
    state.players["p1"].melds = [Meld(suit="hearts", points=100)]

    contributions = round_contributions(state)
    assert contributions["p0"] == {"card_points": 70, "meld_points": 0, "total": 70}
    assert contributions["p1"] == {"card_points": 50, "meld_points": 100, "total": 150}


def test_musik_discard_credited_to_bid_winner():
    """Cards returned to the musik count for the bid winner."""
    state = emptied_round(players=3)
    state.musik = Musik(cards=[parse_card("A_hearts"), parse_card("10_clubs"), parse_card("9_spades")],
                        revealed=True)
    state.bid_winner_id = "p1"
    state.players["p1"].round_score = 30

    settle_round(state, seed=1)
    assert state.round_history[-1]["players"]["p1"]["card_points"] == 51


def test_settle_without_winner_deals_next_round():
    """Below the threshold the next round starts in bidding."""
    state = emptied_round()
    state.players["p0"].round_score = 70
    state.players["p1"].round_score = 50

    assert settle_round(state, seed=9) is None
    assert state.players["p0"].total_score == 70
    assert state.players["p1"].total_score == 50
    assert state.round_number == 2
    assert state.phase == PHASE_BIDDING
    assert state.status == STATUS_PLAYING
    assert all(len(p.hand) == 12 for p in state.players.values())
    assert all(p.round_score == 0 for p in state.players.values())


def test_reaching_threshold_ends_game():
    """A player over 1000 at settlement wins and the room is finished."""
    state = emptied_round()
    state.players["p0"].total_score = 950
    state.players["p0"].round_score = 70
    state.players["p1"].round_score = 50

    record = settle_round(state, seed=9)
    assert record is not None
    assert record.team_name == "Alice"
    assert record.score == "1020:50"
    assert record.rounds == 1
    assert state.winner is record
    assert state.phase == PHASE_FINISHED
    assert state.status == STATUS_FINISHED
    assert state.current_player_id is None


def test_finished_game_rejects_actions():
    """No bidding or play after the game has been won."""
    state = emptied_round()
    state.players["p0"].total_score = 990
    state.players["p0"].round_score = 20
    settle_round(state)

    with pytest.raises(ValidationError):
        bid(state, "p0", 120)
    with pytest.raises(ValidationError):
        play_card(state, "p0", "A_hearts")


def test_tie_at_threshold_continues():
    """Both players crossing 1000 with equal totals keeps the game going."""
    state = emptied_round()
    state.players["p0"].total_score = 960
    state.players["p1"].total_score = 950
    state.players["p0"].round_score = 50
    state.players["p1"].round_score = 60

    assert settle_round(state, seed=2) is None
    assert state.status == STATUS_PLAYING
    assert state.round_number == 2


def test_team_scores():
    """Teams mode sums partners and reports the score as winner:loser."""
    state = create_room("room", "CODE", "Table", "Alice", "p0", max_players=4, game_mode="teams")
    for i in range(1, 4):
        state = join_room(state, f"p{i}", f"Player {i}")
    for pid, team in [("p0", "A"), ("p1", "A"), ("p2", "B"), ("p3", "B")]:
        state = select_team(state, pid, team)
    state = start_game(state, "p0", seed=5)
    for player in state.players.values():
        player.hand = []
    state.musik = None
    state.bid_winner_id = "p0"
    state.team_a_name = "Eagles"
    state.team_a_score = 980
    state.team_b_score = 700
    state.players["p0"].round_score = 15
    state.players["p1"].round_score = 10
    state.players["p2"].round_score = 60
    state.players["p3"].round_score = 35

    record = settle_round(state)
    assert state.round_history[-1]["teams"] == {"A": 25, "B": 95}
    assert record.team_name == "Eagles"
    assert record.score == "1005:795"


def test_engine_records_last_winner():
    """Winning through the engine stores the record for get_last_winner."""
    engine = TysiacEngine(seed=1)
    room = engine.create_room("p0", "Table", "Alice", with_musik=False, max_players=2, game_mode="ffa")
    engine.join_room(room.id, "p1", "Bob")
    engine.start_game(room.id, "p0", seed=3)
    assert engine.get_last_winner() is None

    state = engine.get_room(room.id)
    state.players["p0"].hand = [parse_card("A_hearts")]
    state.players["p1"].hand = [parse_card("9_hearts")]
    state.players["p0"].total_score = 990
    state.phase = PHASE_PLAYING
    state.bid_winner_id = "p0"
    state.current_player_id = "p0"

    engine.play_card(room.id, "p0", "A_hearts")
    room = engine.play_card(room.id, "p1", "9_hearts")

    assert room.status == STATUS_FINISHED
    assert engine.get_last_winner().team_name == "Alice"
    assert engine.get_last_winner().score == "1001:0"
    assert room not in engine.list_rooms()

    with pytest.raises(ValidationError):
        engine.bid(room.id, "p0", 120)
    assert engine.get_room(room.id).version == room.version


def test_restart_after_finish():
    """The host can start a new game once the previous one is over."""
    state = emptied_round()
    state.players["p0"].total_score = 990
    state.players["p0"].round_score = 20
    settle_round(state)
    assert state.status == STATUS_FINISHED

    state = start_game(state, "p0", seed=6)
    assert state.status == STATUS_PLAYING
    assert state.round_number == 2
    assert state.winner is None
    assert all(p.total_score == 0 for p in state.players.values())
