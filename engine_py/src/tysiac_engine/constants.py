"""Game constants and utilities"""

from typing import Dict, List

SUITS: List[str] = ['hearts', 'diamonds', 'clubs', 'spades']

# High to low; index 0 is the strongest rank within a suit
RANKS: List[str] = ['A', '10', 'K', 'Q', 'J', '9']

CARD_POINTS: Dict[str, int] = {'A': 11, '10': 10, 'K': 4, 'Q': 3, 'J': 2, '9': 0}
MELD_POINTS: Dict[str, int] = {'hearts': 100, 'diamonds': 80, 'clubs': 60, 'spades': 40}

DECK_SIZE = 24
DECK_POINTS = 120

MELD_RANKS = ('K', 'Q')

# Room status
STATUS_WAITING = 'waiting'
STATUS_PLAYING = 'playing'
STATUS_FINISHED = 'finished'

# Phases
PHASE_LOBBY = 'lobby'
PHASE_DEALING = 'dealing'
PHASE_BIDDING = 'bidding'
PHASE_PLAYING = 'playing'
PHASE_SCORING = 'scoring'
PHASE_FINISHED = 'finished'

# Game modes
MODE_FFA = 'ffa'
MODE_TEAMS = 'teams'
GAME_MODES = (MODE_FFA, MODE_TEAMS)

TEAM_A = 'A'
TEAM_B = 'B'
TEAMS = (TEAM_A, TEAM_B)
TEAM_SIZE = 2

DEFAULT_TEAM_NAMES = {TEAM_A: 'Team A', TEAM_B: 'Team B'}

# (cards per seat, musik size) keyed by (player count, with musik)
DEAL_LAYOUT = {
    (4, True): (5, 4),
    (4, False): (6, 0),
    (3, True): (7, 3),
    (3, False): (7, 3),
    (2, True): (12, 0),
    (2, False): (12, 0),
}

# Error codes
ERROR_NOT_FOUND = 'NOT_FOUND'
ERROR_VALIDATION = 'VALIDATION_ERROR'
ERROR_ROOM_FULL = 'ROOM_FULL'
ERROR_NOT_YOUR_TURN = 'NOT_YOUR_TURN'
ERROR_ILLEGAL_MOVE = 'ILLEGAL_MOVE'
ERROR_NOT_HOST = 'NOT_HOST'
ERROR_STALE_VERSION = 'STALE_VERSION'
ERROR_INTERNAL = 'INTERNAL_ERROR'
