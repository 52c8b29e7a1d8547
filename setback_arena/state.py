# setback_arena/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import enum

from .cards import Card, Suit

NUM_PLAYERS = 4
CARDS_PER_HAND = 6
TRICKS_PER_HAND = 6
MIN_BID = 2
MAX_BID = 6
DEFAULT_TARGET_SCORE = 21


class InvariantError(RuntimeError):
    """Raised when the table reaches a state no legal game can produce."""


class Seat(enum.Enum):
    # Clockwise order around the table.
    SOUTH = "south"
    WEST = "west"
    NORTH = "north"
    EAST = "east"


SEAT_ORDER = [Seat.SOUTH, Seat.WEST, Seat.NORTH, Seat.EAST]


class GamePhase(enum.Enum):
    SETUP = "setup"
    DEALING = "dealing"
    BIDDING = "bidding"
    PLAYING = "playing"
    SCORING = "scoring"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class PlayerConfig:
    name: str
    is_human: bool = False


@dataclass
class GameConfig:
    target_score: int = DEFAULT_TARGET_SCORE
    players: List[PlayerConfig] = field(
        default_factory=lambda: [PlayerConfig(f"Player {i + 1}") for i in range(NUM_PLAYERS)]
    )
    # Deal the next hand as soon as a hand is scored instead of waiting for
    # Table.start_next_hand().
    auto_next_hand: bool = False

    def __post_init__(self) -> None:
        if len(self.players) != NUM_PLAYERS:
            raise ValueError("Setback requires exactly 4 players")
        if self.target_score <= 0:
            raise ValueError("target_score must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameConfig":
        """Build a config from {"targetScore": 21, "players": [{"name", "isHuman"}]}."""
        players = [
            PlayerConfig(name=p["name"], is_human=bool(p.get("isHuman", False)))
            for p in data["players"]
        ]
        return cls(
            target_score=int(data.get("targetScore", DEFAULT_TARGET_SCORE)),
            players=players,
            auto_next_hand=bool(data.get("autoNextHand", False)),
        )


@dataclass
class PlayerState:
    id: str
    name: str
    seat: Seat
    partner_id: str
    is_human: bool = False
    is_dealer: bool = False
    hand: List[Card] = field(default_factory=list)


@dataclass
class Partnership:
    id: str
    player_ids: tuple[str, str]
    score: int = 0


@dataclass(frozen=True)
class Bid:
    player_id: str
    amount: int = 0
    passed: bool = False


@dataclass
class Trick:
    id: str
    # (player_id, card) pairs in play order
    plays: List[tuple[str, Card]] = field(default_factory=list)
    # effective suit led: the trump suit when a trump card was led
    lead_suit: Optional[Suit] = None
    winner_id: Optional[str] = None

    @property
    def is_sealed(self) -> bool:
        return self.winner_id is not None

    @property
    def lead_card(self) -> Optional[Card]:
        return self.plays[0][1] if self.plays else None

    def seal(self, winner_id: str) -> None:
        if len(self.plays) != NUM_PLAYERS:
            raise InvariantError(
                f"Cannot seal trick {self.id} with {len(self.plays)} plays"
            )
        if self.winner_id is not None and self.winner_id != winner_id:
            raise InvariantError(f"Trick {self.id} is already sealed")
        self.winner_id = winner_id


@dataclass(frozen=True)
class TrickRecord:
    """A sealed trick as kept in hand history."""
    id: str
    plays: Tuple[Tuple[str, Card], ...]
    lead_suit: Optional[Suit]
    winner_id: str

    @classmethod
    def from_trick(cls, trick: Trick) -> "TrickRecord":
        if not trick.is_sealed:
            raise InvariantError(f"Trick {trick.id} is not sealed")
        return cls(trick.id, tuple(trick.plays), trick.lead_suit, trick.winner_id)


@dataclass
class HandState:
    trump_suit: Optional[Suit] = None
    current_bid: Optional[Bid] = None
    bidding_active: bool = False
    turn_index: int = 0
    tricks: List[Trick] = field(default_factory=list)
    current_trick: Optional[Trick] = None
    bids: List[Bid] = field(default_factory=list)


@dataclass(frozen=True)
class PointAward:
    partnership_id: str
    card: Optional[Card] = None
    small_points: int = 0


@dataclass(frozen=True)
class HandScore:
    high: Optional[PointAward]
    low: Optional[PointAward]
    jack: Optional[PointAward]
    off_jack: Optional[PointAward]
    joker: Optional[PointAward]
    game: Optional[PointAward]
    bidding_partnership_id: str
    bid_amount: int
    points: Dict[str, int]
    bid_made: bool
    deltas: Dict[str, int]


@dataclass(frozen=True)
class HandRecord:
    """Finished hand. Records are never mutated, so state snapshots share them."""
    hand_index: int
    dealer_id: str
    final_bid: Bid
    trump_suit: Suit
    tricks: Tuple[TrickRecord, ...]
    score: HandScore
    scores_after: Dict[str, int]


@dataclass
class GameState:
    players: List[PlayerState]
    partnerships: List[Partnership]
    target_score: int = DEFAULT_TARGET_SCORE
    hand: HandState = field(default_factory=HandState)
    phase: GamePhase = GamePhase.SETUP
    winner: Optional[Partnership] = None
    hand_index: int = 0
    completed_hands: List[HandRecord] = field(default_factory=list)

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.hand.turn_index]

    def player_index(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        raise KeyError(player_id)

    def dealer_index(self) -> int:
        for i, p in enumerate(self.players):
            if p.is_dealer:
                return i
        raise InvariantError("No dealer found")

    def partnership_of(self, player_id: str) -> Optional[Partnership]:
        for partnership in self.partnerships:
            if player_id in partnership.player_ids:
                return partnership
        return None

    def opponents_of(self, player_id: str) -> Optional[Partnership]:
        own = self.partnership_of(player_id)
        for partnership in self.partnerships:
            if partnership is not own:
                return partnership
        return None
