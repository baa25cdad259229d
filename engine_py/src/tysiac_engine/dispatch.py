"""
Single action entry point: ``{action, data}`` in, ``{success, ...}`` out.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .constants import ERROR_INTERNAL
from .engine import TysiacEngine
from .errors import GameError
from .events import ActionType, BaseRequest, parse_action
from .serialization import get_public_room_info, sanitize_state, serialize_winner

logger = logging.getLogger(__name__)

Handler = Callable[[TysiacEngine, Any], Dict[str, Any]]


def _room_payload(room, viewer_id) -> Dict[str, Any]:
    return {"room": sanitize_state(room, viewer_id)}


def handle_create_room(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.create_room(req.player_id, req.name, req.nickname, with_musik=req.with_musik,
                              max_players=req.max_players, game_mode=req.game_mode)
    return {"roomId": room.id, **_room_payload(room, req.player_id)}


def handle_join_room(engine: TysiacEngine, req) -> Dict[str, Any]:
    room_id = req.room_id or engine.find_room_by_code(req.code).id
    room = engine.join_room(room_id, req.player_id, req.nickname, req.expected_version)
    return {"roomId": room.id, **_room_payload(room, req.player_id)}


def handle_select_team(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.select_team(req.room_id, req.player_id, req.team, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_update_team_name(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.update_team_name(req.room_id, req.player_id, req.team, req.name, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_set_ready(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.set_ready(req.room_id, req.player_id, req.is_ready, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_start_game(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.start_game(req.room_id, req.player_id, req.seed, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_bid(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.bid(req.room_id, req.player_id, req.amount, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_pass(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.pass_bid(req.room_id, req.player_id, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_discard_cards(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.discard_cards(req.room_id, req.player_id, req.card_ids, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_declare_meld(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.declare_meld(req.room_id, req.player_id, req.suit, req.expected_version)
    return _room_payload(room, req.player_id)


def handle_play_card(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.play_card(req.room_id, req.player_id, req.card_id,
                            expected_version=req.expected_version)
    return _room_payload(room, req.player_id)


def handle_get_room(engine: TysiacEngine, req) -> Dict[str, Any]:
    return _room_payload(engine.get_room(req.room_id), req.player_id)


def handle_leave_room(engine: TysiacEngine, req) -> Dict[str, Any]:
    room = engine.leave_room(req.room_id, req.player_id)
    return {"roomDeleted": room is None}


def handle_delete_room(engine: TysiacEngine, req) -> Dict[str, Any]:
    engine.delete_room(req.room_id, req.player_id)
    return {"roomDeleted": True}


def handle_list_rooms(engine: TysiacEngine, req) -> Dict[str, Any]:
    return {"rooms": [get_public_room_info(room) for room in engine.list_rooms()]}


def handle_get_last_winner(engine: TysiacEngine, req) -> Dict[str, Any]:
    return {"lastWinner": serialize_winner(engine.get_last_winner())}


HANDLERS: Dict[ActionType, Handler] = {
    ActionType.CREATE_ROOM: handle_create_room,
    ActionType.JOIN_ROOM: handle_join_room,
    ActionType.SELECT_TEAM: handle_select_team,
    ActionType.UPDATE_TEAM_NAME: handle_update_team_name,
    ActionType.SET_READY: handle_set_ready,
    ActionType.START_GAME: handle_start_game,
    ActionType.BID: handle_bid,
    ActionType.PASS: handle_pass,
    ActionType.DISCARD_CARDS: handle_discard_cards,
    ActionType.DECLARE_MELD: handle_declare_meld,
    ActionType.PLAY_CARD: handle_play_card,
    ActionType.GET_ROOM: handle_get_room,
    ActionType.LEAVE_ROOM: handle_leave_room,
    ActionType.DELETE_ROOM: handle_delete_room,
    ActionType.LIST_ROOMS: handle_list_rooms,
    ActionType.GET_LAST_WINNER: handle_get_last_winner,
}


def error_payload(error: GameError) -> Dict[str, Any]:
    return {"success": False, "error": error.message, "code": error.code}


def dispatch(engine: TysiacEngine, action: Optional[str],
             data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validate and apply one action.

    Args:
        engine: Room registry
        action: Action name
        data: Payload including the caller's ``playerId``

    Returns:
        ``{"success": True, ...}`` or ``{"success": False, "error", "code"}``
    """
    try:
        request: BaseRequest = parse_action(action, data)
        logger.info("Action %s from %s", action, request.player_id)
        result = HANDLERS[ActionType(action)](engine, request)
    except GameError as e:
        logger.warning("Action %s rejected [%s]: %s", action, e.code, e.message)
        return error_payload(e)
    except Exception:
        logger.exception("Action %s failed", action)
        return {"success": False, "error": "Internal server error", "code": ERROR_INTERNAL}
    return {"success": True, **result}
