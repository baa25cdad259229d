"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

from .constants import MODE_TEAMS, TEAM_A, TEAM_B
from .models import Card, Player, RoomState, TrickPlay, WinnerRecord

HIDDEN_CARD = {"hidden": True}


def serialize_card(card: Card) -> Dict[str, str]:
    return {"id": card.id, "suit": card.suit, "rank": card.rank}


def serialize_play(play: TrickPlay) -> Dict[str, Any]:
    return {"playerId": play.player_id, "card": serialize_card(play.card), "position": play.position}


def serialize_winner(record: Optional[WinnerRecord]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {
        "teamName": record.team_name,
        "score": record.score,
        "rounds": record.rounds,
        "wonAt": record.won_at.isoformat(),
    }


def can_see_hand(state: RoomState, owner: Player, viewer_id: Optional[str]) -> bool:
    """A viewer sees their own hand and, in teams mode, their partner's."""
    if viewer_id is None:
        return False
    if owner.player_id == viewer_id:
        return True
    viewer = state.players.get(viewer_id)
    return (
        state.game_mode == MODE_TEAMS
        and viewer is not None
        and viewer.team is not None
        and viewer.team == owner.team
    )


def _serialize_hand(state: RoomState, owner: Player, viewer_id: Optional[str]) -> List[Dict[str, Any]]:
    if can_see_hand(state, owner, viewer_id):
        return [serialize_card(card) for card in owner.hand]
    return [dict(HIDDEN_CARD) for _ in owner.hand]


def _serialize_musik(state: RoomState, viewer_id: Optional[str]) -> Optional[Dict[str, Any]]:
    musik = state.musik
    if musik is None:
        return None
    owner_view = musik.revealed and viewer_id is not None and viewer_id == state.bid_winner_id
    return {
        "count": len(musik.cards),
        "revealed": musik.revealed,
        "granted": [serialize_card(card) for card in musik.granted] if musik.revealed else [],
        "cards": [serialize_card(card) for card in musik.cards] if owner_view else None,
    }


def sanitize_state(state: RoomState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize room state for transmission to clients.

    Args:
        state: Room state to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    players = []
    for player in state.seated():
        players.append({
            "playerId": player.player_id,
            "nickname": player.nickname,
            "position": player.position,
            "team": player.team,
            "isHost": player.is_host,
            "isReady": player.is_ready,
            "passed": player.passed,
            "cards": _serialize_hand(state, player, viewer_id),
            "cardCount": len(player.hand),
            "melds": [{"suit": meld.suit, "points": meld.points} for meld in player.melds],
            "tricksWon": [[serialize_play(play) for play in trick] for trick in player.tricks_won],
            "roundScore": player.round_score,
            "totalScore": player.total_score,
        })

    return {
        "id": state.id,
        "name": state.name,
        "code": state.code,
        "hostId": state.host_id,
        "version": state.version,
        "maxPlayers": state.max_players,
        "gameMode": state.game_mode,
        "withMusik": state.with_musik,
        "status": state.status,
        "phase": state.phase,
        "players": players,
        "currentPlayerId": state.current_player_id,
        "currentBid": state.current_bid,
        "bidWinnerId": state.bid_winner_id,
        "currentTrump": state.current_trump,
        "roundNumber": state.round_number,
        "pendingDiscard": state.pending_discard,
        "pendingMeld": state.pending_meld,
        "teams": {
            TEAM_A: {"name": state.team_a_name, "score": state.team_a_score},
            TEAM_B: {"name": state.team_b_name, "score": state.team_b_score},
        },
        "currentTrick": [serialize_play(play) for play in state.current_trick],
        "musik": _serialize_musik(state, viewer_id),
        "roundHistory": list(state.round_history),
        "winner": serialize_winner(state.winner),
        "log": state.game_log[-20:],
    }


def serialize_player_for_list(player: Player) -> Dict[str, Any]:
    """Serialize player for lobby player list."""
    return {
        "playerId": player.player_id,
        "nickname": player.nickname,
        "position": player.position,
        "team": player.team,
        "isHost": player.is_host,
        "isReady": player.is_ready,
    }


def get_public_room_info(state: RoomState) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "id": state.id,
        "name": state.name,
        "code": state.code,
        "status": state.status,
        "phase": state.phase,
        "gameMode": state.game_mode,
        "withMusik": state.with_musik,
        "playerCount": len(state.players),
        "maxPlayers": state.max_players,
        "createdAt": state.created_at.isoformat(),
        "players": [serialize_player_for_list(player) for player in state.seated()],
    }
