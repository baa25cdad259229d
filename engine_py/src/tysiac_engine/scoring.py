"""
Round settlement, winner detection and round transitions.
"""

import logging
import random
from typing import Dict, List, Optional, Tuple

from .comparator import card_points
from .constants import (
    MODE_TEAMS, PHASE_BIDDING, PHASE_DEALING, PHASE_FINISHED, PHASE_SCORING,
    STATUS_FINISHED, STATUS_PLAYING, TEAMS
)
from .melds import total_meld_points
from .models import Musik, RoomState, WinnerRecord
from .rules import RuleConfig, default_rules
from .shuffle import Seed, deal_cards

logger = logging.getLogger(__name__)


def reset_round_fields(state: RoomState) -> None:
    """Clear everything a player accumulates during one round."""
    for player in state.players.values():
        player.hand = []
        player.melds = []
        player.tricks_won = []
        player.round_score = 0
        player.passed = False
    state.current_trick = []
    state.current_trump = None
    state.bid_winner_id = None
    state.pending_discard = 0
    state.pending_meld = None
    state.musik = None


def start_round(state: RoomState, seed: Seed = None,
                rules: RuleConfig = default_rules) -> RoomState:
    """
    Deal a new round and open the auction.

    The first bidder is the seat at ``first_bidder_position`` in turn
    order; callers choose it for the first round and advance it by one
    seat for every later round.

    Args:
        state: Room state to deal into (mutated)
        seed: Optional seed for deterministic shuffling
        rules: Rule configuration

    Returns:
        The same state, now in the bidding phase
    """
    state.phase = PHASE_DEALING
    reset_round_fields(state)

    seated = state.seated()
    hands, musik = deal_cards(len(seated), state.with_musik, seed)
    for player, hand in zip(seated, hands):
        player.hand = hand

    if musik:
        state.musik = Musik(cards=musik)

    first_bidder = seated[state.first_bidder_position % len(seated)]
    state.current_player_id = first_bidder.player_id
    state.current_bid = rules.floor_bid
    state.status = STATUS_PLAYING
    state.phase = PHASE_BIDDING
    state.game_log.append(
        f"Round {state.round_number} dealt, {first_bidder.nickname} bids first"
    )
    return state


def round_contributions(state: RoomState) -> Dict[str, Dict[str, int]]:
    """Card points, meld points and total contribution for every player."""
    contributions = {}
    for player in state.seated():
        melds = total_meld_points(player.melds)
        contributions[player.player_id] = {
            'card_points': player.round_score,
            'meld_points': melds,
            'total': player.round_score + melds,
        }
    return contributions


def pick_winner(totals: Dict[str, int], threshold: int) -> Optional[str]:
    """
    Choose the game winner among totals at or above the threshold.

    The strictly highest total wins. An exact tie at the top returns
    None and the game goes on for another round.
    """
    contenders = {key: total for key, total in totals.items() if total >= threshold}
    if not contenders:
        return None
    best = max(contenders.values())
    leaders = [key for key, total in contenders.items() if total == best]
    if len(leaders) > 1:
        return None
    return leaders[0]


def _credit_musik(state: RoomState) -> None:
    # Cards put back into the musik belong to the bid winner
    if state.musik and state.musik.cards and state.bid_winner_id:
        winner = state.players[state.bid_winner_id]
        winner.round_score += card_points(state.musik.cards)


def _apply_totals(state: RoomState,
                  contributions: Dict[str, Dict[str, int]]) -> Tuple[Dict[str, int], Dict[str, int]]:
    team_points = {team: 0 for team in TEAMS}
    for player in state.seated():
        total = contributions[player.player_id]['total']
        player.total_score += total
        if state.game_mode == MODE_TEAMS and player.team:
            team_points[player.team] += total

    if state.game_mode == MODE_TEAMS:
        for team in TEAMS:
            state.add_team_score(team, team_points[team])
        totals = {team: state.team_score(team) for team in TEAMS}
    else:
        totals = {p.player_id: p.total_score for p in state.seated()}
    return team_points, totals


def _winner_record(state: RoomState, winner_key: str, totals: Dict[str, int]) -> WinnerRecord:
    if state.game_mode == MODE_TEAMS:
        other = next(team for team in TEAMS if team != winner_key)
        return WinnerRecord(
            team_name=state.team_name(winner_key),
            score=f"{totals[winner_key]}:{totals[other]}",
            rounds=state.round_number,
        )
    ordered: List[int] = sorted(totals.values(), reverse=True)
    return WinnerRecord(
        team_name=state.players[winner_key].nickname,
        score=":".join(str(total) for total in ordered),
        rounds=state.round_number,
    )


def settle_round(state: RoomState, seed: Seed = None,
                 rules: RuleConfig = default_rules) -> Optional[WinnerRecord]:
    """
    Score a finished round and either end the game or deal the next one.

    Args:
        state: Room state whose hands are all empty (mutated)
        seed: Optional seed for the next deal
        rules: Rule configuration

    Returns:
        The WinnerRecord if the game ended, otherwise None
    """
    state.phase = PHASE_SCORING
    _credit_musik(state)

    contributions = round_contributions(state)
    team_points, totals = _apply_totals(state, contributions)

    state.round_history.append({
        'round_number': state.round_number,
        'bid_winner_id': state.bid_winner_id,
        'bid': state.current_bid,
        'players': contributions,
        'teams': team_points if state.game_mode == MODE_TEAMS else None,
    })
    logger.info("Room %s settled round %s: %s", state.id, state.round_number, totals)

    winner_key = pick_winner(totals, rules.winning_score)
    if winner_key is not None:
        record = _winner_record(state, winner_key, totals)
        state.winner = record
        state.phase = PHASE_FINISHED
        state.status = STATUS_FINISHED
        state.current_player_id = None
        state.game_log.append(f"{record.team_name} wins the game {record.score}")
        return record

    state.first_bidder_position = (state.first_bidder_position + 1) % len(state.players)
    state.round_number += 1
    if isinstance(seed, int):
        # A fixed seed would otherwise deal the same cards every round
        seed = random.Random(seed + state.round_number)
    start_round(state, seed, rules)
    return None
