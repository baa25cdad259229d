"""
Action request models and validation.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError

Suit = Literal['hearts', 'diamonds', 'clubs', 'spades']
Team = Literal['A', 'B']


class ActionType(str, Enum):
    """Inbound action types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    SELECT_TEAM = "select_team"
    UPDATE_TEAM_NAME = "update_team_name"
    SET_READY = "set_ready"
    START_GAME = "start_game"
    BID = "bid"
    PASS = "pass"
    DISCARD_CARDS = "discard_cards"
    DECLARE_MELD = "declare_meld"
    PLAY_CARD = "play_card"
    GET_ROOM = "get_room"
    LEAVE_ROOM = "leave_room"
    DELETE_ROOM = "delete_room"
    LIST_ROOMS = "list_rooms"
    GET_LAST_WINNER = "get_last_winner"


class OutboundEventType(str, Enum):
    """Outbound WebSocket event types."""
    STATE_FULL = "state_full"
    ROOM_DELETED = "room_deleted"
    ACTION_RESULT = "action_result"
    ERROR = "error"


class BaseRequest(BaseModel):
    """Base request; the wire format is camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    player_id: str = Field(..., min_length=1, max_length=64)


class RoomRequest(BaseRequest):
    room_id: str = Field(..., min_length=1)
    expected_version: Optional[int] = None


class CreateRoomRequest(BaseRequest):
    name: str = Field(..., max_length=50)
    nickname: str = Field(..., max_length=30)
    with_musik: bool
    max_players: int
    game_mode: Literal['ffa', 'teams']


class JoinRoomRequest(BaseRequest):
    room_id: Optional[str] = None
    code: Optional[str] = None
    nickname: str = Field(..., max_length=30)
    expected_version: Optional[int] = None

    @model_validator(mode='after')
    def check_target(self):
        if not self.room_id and not self.code:
            raise ValueError('roomId or code is required')
        return self


class SelectTeamRequest(RoomRequest):
    team: Team


class UpdateTeamNameRequest(RoomRequest):
    team: Team
    name: str = Field(..., max_length=30)


class SetReadyRequest(RoomRequest):
    is_ready: bool


class StartGameRequest(RoomRequest):
    seed: Optional[int] = None


class BidRequest(RoomRequest):
    amount: int


class PassRequest(RoomRequest):
    pass


class DiscardCardsRequest(RoomRequest):
    card_ids: List[str] = Field(..., min_length=1, max_length=4)


class DeclareMeldRequest(RoomRequest):
    suit: Suit


class PlayCardRequest(RoomRequest):
    card_id: str = Field(..., min_length=1)


class GetRoomRequest(RoomRequest):
    pass


class LeaveRoomRequest(RoomRequest):
    pass


class DeleteRoomRequest(RoomRequest):
    pass


class ListRoomsRequest(BaseRequest):
    player_id: Optional[str] = None


class GetLastWinnerRequest(BaseRequest):
    player_id: Optional[str] = None


ACTION_MODELS = {
    ActionType.CREATE_ROOM: CreateRoomRequest,
    ActionType.JOIN_ROOM: JoinRoomRequest,
    ActionType.SELECT_TEAM: SelectTeamRequest,
    ActionType.UPDATE_TEAM_NAME: UpdateTeamNameRequest,
    ActionType.SET_READY: SetReadyRequest,
    ActionType.START_GAME: StartGameRequest,
    ActionType.BID: BidRequest,
    ActionType.PASS: PassRequest,
    ActionType.DISCARD_CARDS: DiscardCardsRequest,
    ActionType.DECLARE_MELD: DeclareMeldRequest,
    ActionType.PLAY_CARD: PlayCardRequest,
    ActionType.GET_ROOM: GetRoomRequest,
    ActionType.LEAVE_ROOM: LeaveRoomRequest,
    ActionType.DELETE_ROOM: DeleteRoomRequest,
    ActionType.LIST_ROOMS: ListRoomsRequest,
    ActionType.GET_LAST_WINNER: GetLastWinnerRequest,
}


def parse_action(action: Optional[str], data: Optional[Dict[str, Any]]) -> BaseRequest:
    """
    Parse a raw action name and payload into its request model.

    Args:
        action: Action name, e.g. ``play_card``
        data: Raw payload (camelCase keys)

    Returns:
        Parsed request model

    Raises:
        ValidationError: If the action is unknown or the payload is malformed
    """
    if not action:
        raise ValidationError("Missing action")

    try:
        action_type = ActionType(action)
    except ValueError:
        raise ValidationError(f"Unknown action: {action}")

    if data is not None and not isinstance(data, dict):
        raise ValidationError("Action data must be an object")

    try:
        return ACTION_MODELS[action_type].model_validate(data or {})
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'data'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {action} data: {problems}")


def create_event(event_type: OutboundEventType, **payload: Any) -> Dict[str, Any]:
    """Build an outbound WebSocket frame."""
    return {"type": event_type.value, **payload}
