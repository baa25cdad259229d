"""Room/game state machine and the room registry"""

import copy
import logging
import random
import threading
import uuid
from typing import Callable, Dict, List, Optional

from .comparator import resolve_trick, trick_points
from .constants import (
    GAME_MODES, MELD_RANKS, MODE_TEAMS, PHASE_BIDDING, PHASE_LOBBY, PHASE_PLAYING,
    STATUS_FINISHED, STATUS_PLAYING, STATUS_WAITING, SUITS, TEAM_A, TEAM_B, TEAM_SIZE,
    TEAMS
)
from .errors import (
    ConflictError, IllegalMoveError, NotFoundError, RoomFullError, ValidationError
)
from .melds import has_marriage, meld_points
from .models import Meld, Player, RoomState, TrickPlay, WinnerRecord
from .rules import RuleConfig, default_rules
from .scoring import reset_round_fields, settle_round, start_round
from .shuffle import Seed
from .validate import (
    require_host, require_phase, require_player, require_teams_mode, require_turn,
    validate_discard, validate_play
)

logger = logging.getLogger(__name__)


# ===================== LOBBY =====================

def create_room(room_id: str, code: str, name: str, nickname: str, player_id: str,
                with_musik: bool = True, max_players: int = 4, game_mode: str = 'ffa',
                rules: RuleConfig = default_rules) -> RoomState:
    """Create a room in the lobby with its host seated at position 0."""
    name = (name or '').strip()
    nickname = (nickname or '').strip()
    if not name:
        raise ValidationError("Room name is required")
    if not nickname:
        raise ValidationError("Nickname is required")
    if not player_id:
        raise ValidationError("Player id is required")
    if not rules.min_players <= max_players <= rules.max_players:
        raise ValidationError(f"maxPlayers must be between {rules.min_players} and {rules.max_players}")
    if game_mode not in GAME_MODES:
        raise ValidationError(f"Unknown game mode: {game_mode}")
    if game_mode == MODE_TEAMS and max_players != 2 * TEAM_SIZE:
        raise ValidationError("Teams mode needs exactly 4 seats")

    state = RoomState(
        id=room_id,
        name=name,
        code=code,
        host_id=player_id,
        max_players=max_players,
        game_mode=game_mode,
        with_musik=with_musik,
    )
    state.players[player_id] = Player(
        player_id=player_id,
        nickname=nickname,
        position=0,
        is_host=True,
    )
    state.game_log.append(f"{nickname} created the room")
    return state


def join_room(state: RoomState, player_id: str, nickname: str) -> RoomState:
    """Seat a player at the lowest free position."""
    if player_id in state.players:
        # Rejoin with the same identity
        return state

    nickname = (nickname or '').strip()
    if not nickname:
        raise ValidationError("Nickname is required")
    if state.status == STATUS_PLAYING:
        raise ValidationError("Game already in progress")

    used = {p.position for p in state.players.values()}
    position = next((seat for seat in range(state.max_players) if seat not in used), None)
    if position is None:
        raise RoomFullError("Room is full")

    state.players[player_id] = Player(player_id=player_id, nickname=nickname, position=position)
    state.game_log.append(f"{nickname} joined")
    return state


def select_team(state: RoomState, player_id: str, team: str) -> RoomState:
    require_teams_mode(state)
    player = require_player(state, player_id)
    if state.status == STATUS_PLAYING:
        raise ValidationError("Teams are locked while the game is running")
    if team not in TEAMS:
        raise ValidationError(f"Unknown team: {team}")
    player.team = team
    return state


def update_team_name(state: RoomState, player_id: str, team: str, name: str) -> RoomState:
    require_player(state, player_id)
    name = (name or '').strip()
    if team not in TEAMS:
        raise ValidationError(f"Unknown team: {team}")
    if not name:
        raise ValidationError("Team name is required")
    if team == TEAM_A:
        state.team_a_name = name
    else:
        state.team_b_name = name
    return state


def set_ready(state: RoomState, player_id: str, is_ready: bool) -> RoomState:
    player = require_player(state, player_id)
    player.is_ready = is_ready
    return state


def _seat_teams_alternately(state: RoomState) -> None:
    # Partners sit opposite each other: A, B, A, B
    seated = state.seated()
    first_team = seated[0].team
    second_team = TEAM_B if first_team == TEAM_A else TEAM_A
    first = [p for p in seated if p.team == first_team]
    second = [p for p in seated if p.team == second_team]
    for index, player in enumerate(first):
        player.position = 2 * index
    for index, player in enumerate(second):
        player.position = 2 * index + 1


def _reset_game_totals(state: RoomState) -> None:
    state.team_a_score = 0
    state.team_b_score = 0
    state.winner = None
    state.round_history = []
    for player in state.players.values():
        player.total_score = 0


def start_game(state: RoomState, player_id: str, seed: Seed = None,
               rules: RuleConfig = default_rules) -> RoomState:
    """
    Start a game: deal round one and open the auction.

    Args:
        state: Room in the lobby, or a finished room for a new game
        player_id: Caller; must be the host
        seed: Optional seed for the deal and the first bidder
        rules: Rule configuration
    """
    require_host(state, player_id)
    if state.status == STATUS_PLAYING:
        raise ValidationError("Game already in progress")

    count = len(state.players)
    if not rules.min_players <= count <= state.max_players:
        raise ValidationError(f"Need between {rules.min_players} and {state.max_players} players")

    if state.game_mode == MODE_TEAMS:
        if count != 2 * TEAM_SIZE:
            raise ValidationError("Teams mode needs 4 players")
        for team in TEAMS:
            members = [p for p in state.players.values() if p.team == team]
            if len(members) != TEAM_SIZE:
                raise ValidationError("Each team needs exactly 2 players")
        _seat_teams_alternately(state)

    rng = seed if isinstance(seed, random.Random) else random.Random(seed)

    if state.games_started:
        state.round_number += 1
    state.games_started += 1
    _reset_game_totals(state)

    state.first_bidder_position = rng.randrange(count)
    start_round(state, rng, rules)
    logger.info("Game started in room %s with %d players", state.id, count)
    return state


def abandon_game(state: RoomState) -> None:
    """Return a room to the lobby, dropping the round in progress."""
    reset_round_fields(state)
    _reset_game_totals(state)
    state.status = STATUS_WAITING
    state.phase = PHASE_LOBBY
    state.current_player_id = None
    state.current_bid = 0
    for player in state.players.values():
        player.is_ready = False
    state.game_log.append("Game abandoned")


def leave_room(state: RoomState, player_id: str) -> RoomState:
    """
    Remove a player from the room.

    Leaving while a game is running abandons that game; the caller
    destroys the room when it ends up empty or the host left.
    """
    player = require_player(state, player_id)
    in_game = state.status == STATUS_PLAYING
    del state.players[player_id]
    state.game_log.append(f"{player.nickname} left")
    if in_game and state.players:
        abandon_game(state)
    return state


def should_destroy(state: RoomState) -> bool:
    return not state.players or state.host_id not in state.players


# ===================== BIDDING =====================

def _next_seat(state: RoomState, player_id: str,
               skip: Callable[[Player], bool] = lambda p: False) -> Optional[str]:
    seated = state.seated()
    idx = next((i for i, p in enumerate(seated) if p.player_id == player_id), 0)
    n = len(seated)
    for i in range(1, n + 1):
        nxt = seated[(idx + i) % n]
        if not skip(nxt):
            return nxt.player_id
    return None


def _finish_bidding(state: RoomState) -> None:
    winner = state.players[state.bid_winner_id]
    if state.musik and state.musik.cards:
        granted = list(state.musik.cards)
        winner.hand.extend(granted)
        state.musik.granted = granted
        state.musik.cards = []
        state.musik.revealed = True
        state.pending_discard = len(granted)
    state.current_player_id = winner.player_id
    state.current_trump = None
    state.phase = PHASE_PLAYING
    state.game_log.append(f"{winner.nickname} wins the auction at {state.current_bid}")


def bid(state: RoomState, player_id: str, amount: int,
        rules: RuleConfig = default_rules) -> RoomState:
    require_phase(state, PHASE_BIDDING)
    player = require_turn(state, player_id)

    if not rules.validate_bid(amount, state.current_bid, state.bid_winner_id is not None):
        raise ValidationError(f"Invalid bid {amount} (current {state.current_bid})")

    state.current_bid = amount
    state.bid_winner_id = player_id
    state.game_log.append(f"{player.nickname} bids {amount}")

    nxt = _next_seat(state, player_id, skip=lambda p: p.passed or p.player_id == player_id)
    if nxt is None:
        _finish_bidding(state)
    else:
        state.current_player_id = nxt
    return state


def pass_bid(state: RoomState, player_id: str,
             rules: RuleConfig = default_rules) -> RoomState:
    require_phase(state, PHASE_BIDDING)
    player = require_turn(state, player_id)

    player.passed = True
    state.game_log.append(f"{player.nickname} passes")

    active = [p for p in state.players.values() if not p.passed]
    if state.bid_winner_id and len(active) <= 1:
        _finish_bidding(state)
    elif not active:
        seated = state.seated()
        first = seated[state.first_bidder_position % len(seated)]
        state.bid_winner_id = first.player_id
        state.current_bid = rules.floor_bid
        _finish_bidding(state)
    else:
        state.current_player_id = _next_seat(state, player_id, skip=lambda p: p.passed)
    return state


def discard_cards(state: RoomState, player_id: str, card_ids: List[str]) -> RoomState:
    """Bid winner returns as many cards as the musik held, face down."""
    cards = validate_discard(state, player_id, card_ids)
    player = state.players[player_id]
    for card in cards:
        player.hand.remove(card)
        state.musik.cards.append(card)
    state.pending_discard = 0
    state.game_log.append(f"{player.nickname} returned {len(cards)} cards to the musik")
    return state


# ===================== PLAY =====================

def _bank_meld(state: RoomState, player: Player, suit: str) -> None:
    player.melds.append(Meld(suit=suit, points=meld_points(suit)))
    state.current_trump = suit
    state.game_log.append(f"{player.nickname} melds {suit} ({meld_points(suit)}), trump is {suit}")


def declare_meld(state: RoomState, player_id: str, suit: str) -> RoomState:
    """Bank a marriage before leading; the next lead must be its King or Queen."""
    require_phase(state, PHASE_PLAYING)
    player = require_turn(state, player_id)

    if state.pending_discard:
        raise ValidationError(f"Return {state.pending_discard} cards to the musik first")
    if suit not in SUITS:
        raise ValidationError(f"Unknown suit: {suit}")
    if state.current_trick:
        raise IllegalMoveError("Melds are declared when leading a trick")
    if state.pending_meld:
        raise IllegalMoveError(f"Lead the King or Queen of {state.pending_meld} first")
    if player.has_melded(suit):
        raise IllegalMoveError(f"Meld in {suit} already declared this round")
    if not has_marriage(player.hand, suit):
        raise IllegalMoveError(f"No King and Queen of {suit} in hand")

    _bank_meld(state, player, suit)
    state.pending_meld = suit
    return state


def _complete_trick(state: RoomState, seed: Seed, rules: RuleConfig) -> Optional[WinnerRecord]:
    trick = state.current_trick
    winner_id = resolve_trick(trick, state.current_trump, trick[0].card.suit)
    winner = state.players[winner_id]
    points = trick_points(trick)

    winner.round_score += points
    winner.tricks_won.append(list(trick))
    state.current_trick = []
    state.current_player_id = winner_id
    state.game_log.append(f"{winner.nickname} takes the trick ({points})")

    if all(not p.hand for p in state.players.values()):
        return settle_round(state, seed, rules)
    return None


def play_card(state: RoomState, player_id: str, card_id: str, seed: Seed = None,
              rules: RuleConfig = default_rules) -> RoomState:
    """
    Play one card into the current trick.

    Leading the King or Queen of a held marriage banks the meld and
    makes that suit trump before anyone follows.
    """
    card = validate_play(state, player_id, card_id)
    player = state.players[player_id]

    leading = not state.current_trick
    if leading and state.pending_meld:
        if card.suit != state.pending_meld or card.rank not in MELD_RANKS:
            raise IllegalMoveError(f"Lead the King or Queen of {state.pending_meld} after declaring it")
        state.pending_meld = None

    if (leading and card.rank in MELD_RANKS and not player.has_melded(card.suit)
            and has_marriage(player.hand, card.suit)):
        _bank_meld(state, player, card.suit)

    player.hand.remove(card)
    state.current_trick.append(TrickPlay(player_id=player_id, card=card, position=len(state.current_trick)))

    if len(state.current_trick) == len(state.players):
        _complete_trick(state, seed, rules)
    else:
        state.current_player_id = _next_seat(state, player_id)
    return state


# ===================== REGISTRY =====================

Listener = Callable[[str], None]


class TysiacEngine:
    """
    Registry of live rooms.

    Every mutation runs under that room's lock against a deep copy which
    replaces the stored state only when the transition succeeds, so a
    rejected action leaves no trace and readers always see a committed
    snapshot.
    """

    def __init__(self, rules: RuleConfig = default_rules, seed: Optional[int] = None):
        self.rules = rules
        self.rooms: Dict[str, RoomState] = {}
        self.room_locks: Dict[str, threading.Lock] = {}
        self.registry_lock = threading.Lock()
        self.codes: Dict[str, str] = {}
        self.last_winners: List[WinnerRecord] = []
        self.listeners: List[Listener] = []
        self.rng = random.Random(seed)

    # ---- registry helpers ----

    def subscribe(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def _notify(self, room_id: str) -> None:
        for listener in list(self.listeners):
            try:
                listener(room_id)
            except Exception:
                logger.exception("Room listener failed for %s", room_id)

    def get_room(self, room_id: str) -> RoomState:
        room = self.rooms.get(room_id)
        if not room:
            raise NotFoundError("Room not found")
        return room

    def find_room_by_code(self, code: str) -> RoomState:
        room_id = self.codes.get((code or '').strip().upper())
        if not room_id:
            raise NotFoundError("Room not found")
        return self.get_room(room_id)

    def _new_code(self) -> str:
        while True:
            code = uuid.uuid4().hex[:self.rules.code_length].upper()
            if code not in self.codes:
                return code

    def _lock_for(self, room_id: str) -> threading.Lock:
        lock = self.room_locks.get(room_id)
        if lock is None:
            raise NotFoundError("Room not found")
        return lock

    def _seed(self, seed: Seed) -> Seed:
        return seed if seed is not None else self.rng.randrange(2 ** 32)

    def _mutate(self, room_id: str, transition: Callable[[RoomState], object],
                expected_version: Optional[int] = None) -> RoomState:
        with self._lock_for(room_id):
            room = self.get_room(room_id)
            if expected_version is not None and expected_version != room.version:
                raise ConflictError(f"Room changed (version {room.version}, expected {expected_version})")
            working = copy.deepcopy(room)
            transition(working)
            working.increment_version()
            self.rooms[room_id] = working
            if working.winner is not None and room.winner is None:
                self.last_winners.append(working.winner)
        self._notify(room_id)
        return working

    def _destroy(self, room_id: str) -> None:
        with self.registry_lock:
            room = self.rooms.pop(room_id, None)
            if room:
                self.codes.pop(room.code, None)
        self.room_locks.pop(room_id, None)
        logger.info("Room %s destroyed", room_id)

    # ---- actions ----

    def create_room(self, player_id: str, name: str, nickname: str, with_musik: bool = True,
                    max_players: int = 4, game_mode: str = 'ffa') -> RoomState:
        with self.registry_lock:
            room_id = str(uuid.uuid4())
            code = self._new_code()
            room = create_room(room_id, code, name, nickname, player_id,
                               with_musik=with_musik, max_players=max_players,
                               game_mode=game_mode, rules=self.rules)
            self.rooms[room_id] = room
            self.codes[code] = room_id
            self.room_locks[room_id] = threading.Lock()
        logger.info("Room created: %s (%s)", room_id, code)
        self._notify(room_id)
        return room

    def join_room(self, room_id: str, player_id: str, nickname: str,
                  expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: join_room(s, player_id, nickname), expected_version)

    def select_team(self, room_id: str, player_id: str, team: str,
                    expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: select_team(s, player_id, team), expected_version)

    def update_team_name(self, room_id: str, player_id: str, team: str, name: str,
                         expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: update_team_name(s, player_id, team, name),
                            expected_version)

    def set_ready(self, room_id: str, player_id: str, is_ready: bool,
                  expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: set_ready(s, player_id, is_ready), expected_version)

    def start_game(self, room_id: str, player_id: str, seed: Seed = None,
                   expected_version: Optional[int] = None) -> RoomState:
        seed = self._seed(seed)
        return self._mutate(room_id, lambda s: start_game(s, player_id, seed, self.rules),
                            expected_version)

    def bid(self, room_id: str, player_id: str, amount: int,
            expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: bid(s, player_id, amount, self.rules), expected_version)

    def pass_bid(self, room_id: str, player_id: str,
                 expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: pass_bid(s, player_id, self.rules), expected_version)

    def discard_cards(self, room_id: str, player_id: str, card_ids: List[str],
                      expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: discard_cards(s, player_id, card_ids), expected_version)

    def declare_meld(self, room_id: str, player_id: str, suit: str,
                     expected_version: Optional[int] = None) -> RoomState:
        return self._mutate(room_id, lambda s: declare_meld(s, player_id, suit), expected_version)

    def play_card(self, room_id: str, player_id: str, card_id: str, seed: Seed = None,
                  expected_version: Optional[int] = None) -> RoomState:
        seed = self._seed(seed)
        return self._mutate(room_id, lambda s: play_card(s, player_id, card_id, seed, self.rules),
                            expected_version)

    def leave_room(self, room_id: str, player_id: str) -> Optional[RoomState]:
        """Remove a player; returns None when the room was destroyed."""
        room = self._mutate(room_id, lambda s: leave_room(s, player_id))
        if should_destroy(room):
            self._destroy(room_id)
            self._notify(room_id)
            return None
        return room

    def delete_room(self, room_id: str, player_id: str) -> None:
        with self._lock_for(room_id):
            require_host(self.get_room(room_id), player_id)
        self._destroy(room_id)
        self._notify(room_id)

    def list_rooms(self) -> List[RoomState]:
        """Rooms still waiting or playing, newest first."""
        rooms = [room for room in list(self.rooms.values()) if room.status != STATUS_FINISHED]
        return sorted(rooms, key=lambda room: room.created_at, reverse=True)

    def get_last_winner(self) -> Optional[WinnerRecord]:
        return self.last_winners[-1] if self.last_winners else None
