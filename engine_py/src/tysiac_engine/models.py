"""Game models and data structures"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .constants import (
    CARD_POINTS, DEFAULT_TEAM_NAMES, MODE_FFA, PHASE_LOBBY, STATUS_WAITING,
    TEAM_A, TEAM_B
)


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str

    @property
    def id(self) -> str:
        return f"{self.rank}_{self.suit}"

    @property
    def points(self) -> int:
        return CARD_POINTS[self.rank]

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class Meld:
    suit: str
    points: int


@dataclass
class TrickPlay:
    player_id: str
    card: Card
    position: int


@dataclass
class Player:
    player_id: str
    nickname: str
    position: int
    team: Optional[str] = None  # A | B in teams mode
    is_host: bool = False
    is_ready: bool = False
    hand: List[Card] = field(default_factory=list)
    melds: List[Meld] = field(default_factory=list)  # declared this round
    tricks_won: List[List[TrickPlay]] = field(default_factory=list)
    round_score: int = 0
    total_score: int = 0  # cumulative, used in ffa mode
    passed: bool = False  # out of the current auction

    def holds(self, card_id: str) -> Optional[Card]:
        return next((card for card in self.hand if card.id == card_id), None)

    def has_melded(self, suit: str) -> bool:
        return any(meld.suit == suit for meld in self.melds)


@dataclass
class Musik:
    cards: List[Card] = field(default_factory=list)  # face down in the pile
    revealed: bool = False
    granted: List[Card] = field(default_factory=list)  # shown when handed to the bid winner


@dataclass
class WinnerRecord:
    team_name: str
    score: str
    rounds: int
    won_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class RoomState:
    id: str
    name: str
    code: str
    host_id: str
    max_players: int = 4
    game_mode: str = MODE_FFA
    with_musik: bool = True
    version: int = 0
    status: str = STATUS_WAITING  # waiting|playing|finished
    phase: str = PHASE_LOBBY  # lobby|dealing|bidding|playing|scoring|finished
    players: Dict[str, Player] = field(default_factory=dict)
    current_player_id: Optional[str] = None
    current_bid: int = 0
    bid_winner_id: Optional[str] = None
    current_trump: Optional[str] = None
    round_number: int = 1
    games_started: int = 0
    first_bidder_position: int = 0
    team_a_name: str = DEFAULT_TEAM_NAMES[TEAM_A]
    team_b_name: str = DEFAULT_TEAM_NAMES[TEAM_B]
    team_a_score: int = 0
    team_b_score: int = 0
    musik: Optional[Musik] = None
    pending_discard: int = 0  # cards the bid winner still owes the musik
    pending_meld: Optional[str] = None  # declared suit whose King or Queen must lead next
    current_trick: List[TrickPlay] = field(default_factory=list)
    round_history: List[dict] = field(default_factory=list)  # settled rounds
    winner: Optional[WinnerRecord] = None
    game_log: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def seated(self) -> List[Player]:
        """Players ordered by turn position."""
        return sorted(self.players.values(), key=lambda p: p.position)

    def team_name(self, team: str) -> str:
        return self.team_a_name if team == TEAM_A else self.team_b_name

    def team_score(self, team: str) -> int:
        return self.team_a_score if team == TEAM_A else self.team_b_score

    def add_team_score(self, team: str, points: int) -> None:
        if team == TEAM_A:
            self.team_a_score += points
        else:
            self.team_b_score += points

    def increment_version(self) -> None:
        self.version += 1
