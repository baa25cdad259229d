"""
Move and action validation.
"""

from typing import List, Optional

from .constants import MODE_TEAMS, PHASE_PLAYING, STATUS_FINISHED
from .errors import (
    AuthorizationError, IllegalMoveError, NotFoundError, TurnError, ValidationError
)
from .models import Card, Player, RoomState


def can_play_card(card: Card, hand: List[Card], lead_suit: Optional[str],
                  trump: Optional[str] = None) -> bool:
    """
    Check the follow-suit rule.

    Any card may lead a trick. Afterwards the lead suit must be followed
    when the hand holds it; there is no obligation to play trump.
    """
    if not lead_suit:
        return True
    if card.suit == lead_suit:
        return True
    return not any(c.suit == lead_suit for c in hand)


def lead_suit_of(state: RoomState) -> Optional[str]:
    return state.current_trick[0].card.suit if state.current_trick else None


def require_player(state: RoomState, player_id: str) -> Player:
    player = state.players.get(player_id)
    if not player:
        raise NotFoundError(f"Player {player_id} is not in room {state.id}")
    return player


def require_host(state: RoomState, player_id: str) -> None:
    if player_id != state.host_id:
        raise AuthorizationError("Only the host can do that")


def require_phase(state: RoomState, *phases: str) -> None:
    if state.status == STATUS_FINISHED:
        raise ValidationError("The game is finished")
    if state.phase not in phases:
        raise ValidationError(f"Action not allowed in {state.phase} phase")


def require_turn(state: RoomState, player_id: str) -> Player:
    player = require_player(state, player_id)
    if state.current_player_id != player_id:
        raise TurnError("Not your turn")
    return player


def require_teams_mode(state: RoomState) -> None:
    if state.game_mode != MODE_TEAMS:
        raise ValidationError("Teams are only used in teams mode")


def validate_play(state: RoomState, player_id: str, card_id: str) -> Card:
    """
    Validate a card play attempt.

    Args:
        state: Current room state
        player_id: ID of player attempting the play
        card_id: Card being played

    Returns:
        The card taken from the player's hand

    Raises:
        TurnError, ValidationError or IllegalMoveError
    """
    require_phase(state, PHASE_PLAYING)
    player = require_turn(state, player_id)

    if state.pending_discard:
        raise ValidationError(f"Return {state.pending_discard} cards to the musik first")

    card = player.holds(card_id)
    if card is None:
        raise IllegalMoveError("Card not in hand")

    if not can_play_card(card, player.hand, lead_suit_of(state), state.current_trump):
        raise IllegalMoveError("Invalid play - must follow suit")

    return card


def validate_discard(state: RoomState, player_id: str, card_ids: List[str]) -> List[Card]:
    """Validate the bid winner's musik discard and return the cards."""
    require_phase(state, PHASE_PLAYING)
    player = require_player(state, player_id)

    if not state.pending_discard:
        raise ValidationError("No discard pending")
    if player_id != state.bid_winner_id:
        raise TurnError("Only the bid winner returns cards to the musik")
    if len(card_ids) != state.pending_discard:
        raise ValidationError(f"Exactly {state.pending_discard} cards must be returned")
    if len(set(card_ids)) != len(card_ids):
        raise ValidationError("Duplicate cards in discard")

    cards = []
    for card_id in card_ids:
        card = player.holds(card_id)
        if card is None:
            raise IllegalMoveError(f"You don't own {card_id}")
        cards.append(card)
    return cards
