# setback_arena/bidding.py
"""
Heuristic bidding decisions for AI seats.

A hand's overall strength picks a base "pass threshold" (lower means more
willing to bid). Four independent multipliers then adjust it, in order:
behavior profile (with a little jitter), seat position, game score and
partnership. The adjusted threshold decides between passing and bidding, and
the strength decides how much to bid.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import enum
import logging
import random

from .cards import Card
from .evaluator import HandEvaluation, evaluate_hand
from .state import MAX_BID, MIN_BID, NUM_PLAYERS, Bid, GameState

logger = logging.getLogger(__name__)

PASS_CUTOFF = 0.9
OVERCOMMIT_CUTOFF = 0.7
JITTER_LOW = 0.9
JITTER_SPAN = 0.2


class Personality(enum.Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
    ADAPTIVE = "adaptive"


class HandStrength(enum.IntEnum):
    """Lower bound of each strength band."""
    VERY_WEAK = 0
    WEAK = 20
    MEDIUM = 35
    STRONG = 60
    VERY_STRONG = 80


_BASE_THRESHOLDS = {
    HandStrength.VERY_STRONG: 0.2,
    HandStrength.STRONG: 0.4,
    HandStrength.MEDIUM: 0.6,
    HandStrength.WEAK: 0.8,
    HandStrength.VERY_WEAK: 1.0,
}

_PROFILE_FACTORS = {
    Personality.CONSERVATIVE: 1.3,
    Personality.AGGRESSIVE: 0.7,
    Personality.BALANCED: 1.0,
}

# (minimum strength, bid) from strongest down.
_BID_BANDS = [(85, 6), (75, 5), (60, 4), (45, 3)]


def strength_band(strength: int) -> HandStrength:
    for band in sorted(HandStrength, reverse=True):
        if strength >= band:
            return band
    return HandStrength.VERY_WEAK


@dataclass(frozen=True)
class TableContext:
    """What a bidder can see of the table when it is their turn."""
    player_id: str
    partner_id: str
    is_dealer: bool = False
    partner_is_dealer: bool = False
    bids: Tuple[Bid, ...] = ()
    current_bid: Optional[Bid] = None
    own_score: int = 0
    opponent_score: int = 0
    target_score: int = 21
    num_players: int = NUM_PLAYERS

    @classmethod
    def from_state(cls, state: GameState, player_id: str) -> "TableContext":
        player = state.players[state.player_index(player_id)]
        partner = state.players[state.player_index(player.partner_id)]
        own = state.partnership_of(player_id)
        opponents = state.opponents_of(player_id)
        return cls(
            player_id=player_id,
            partner_id=partner.id,
            is_dealer=player.is_dealer,
            partner_is_dealer=partner.is_dealer,
            bids=tuple(state.hand.bids),
            current_bid=state.hand.current_bid,
            own_score=own.score if own else 0,
            opponent_score=opponents.score if opponents else 0,
            target_score=state.target_score,
            num_players=state.num_players,
        )

    @property
    def min_bid(self) -> int:
        if self.current_bid is None:
            return MIN_BID
        return self.current_bid.amount + 1


@dataclass
class BidDecision:
    amount: Optional[int]
    strength: int
    band: HandStrength
    min_bid: int
    threshold_steps: List[Tuple[str, float]] = field(default_factory=list)
    reason: str = ""

    @property
    def threshold(self) -> float:
        return self.threshold_steps[-1][1] if self.threshold_steps else 1.0

    @property
    def passed(self) -> bool:
        return self.amount is None


def base_threshold(strength: int) -> float:
    return _BASE_THRESHOLDS[strength_band(strength)]


def profile_factor(personality: Personality, strength: int) -> float:
    """Profile multiplier before jitter."""
    if personality == Personality.ADAPTIVE:
        if strength >= 70:
            return 0.8
        if strength <= 30:
            return 1.2
        return 1.0
    return _PROFILE_FACTORS[personality]


def position_factor(context: TableContext) -> float:
    factor = 1.0
    if context.is_dealer:
        others_passed = all(
            b.passed for b in context.bids if b.player_id != context.player_id
        )
        if others_passed and context.current_bid is None:
            # Stuck dealer: a forced minimum bid is coming anyway.
            factor = 0.3
        else:
            factor = 0.9

    if len(context.bids) == context.num_players - 1:
        if context.current_bid is not None and context.current_bid.amount < MAX_BID:
            factor *= 0.9
    return factor


def score_factor(context: TableContext) -> float:
    near_win = context.target_score - 3
    closing_in = context.target_score - 6
    ours = context.own_score
    theirs = context.opponent_score
    diff = ours - theirs

    factor = 1.0
    if diff < -5:
        factor = 0.7
    elif diff <= -2:
        factor = 0.85

    if ours >= near_win:
        factor = 1.3
    elif ours >= closing_in and diff > 3:
        factor = 1.15

    if theirs >= near_win:
        factor = 0.5
    elif theirs >= closing_in:
        factor = 0.75
    return factor


def partnership_factor(context: TableContext) -> float:
    factor = 1.0
    partner_bids = [b for b in context.bids if b.player_id == context.partner_id]
    if partner_bids:
        factor = 0.95 if partner_bids[-1].passed else 1.2

    if context.partner_is_dealer:
        others = [
            b
            for b in context.bids
            if b.player_id not in (context.partner_id, context.player_id)
        ]
        if all(b.passed for b in others):
            factor = 0.9
    return factor


def suggested_amount(strength: int) -> int:
    for floor, amount in _BID_BANDS:
        if strength >= floor:
            return amount
    return MIN_BID


class BiddingEngine:
    """
    Stateless bid decision procedure; the only state is the jitter RNG.

    Pass a seeded `random.Random` to make decisions reproducible.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()

    def jitter(self) -> float:
        return JITTER_LOW + self.rng.random() * JITTER_SPAN

    def decide(
        self,
        hand: Sequence[Card],
        context: TableContext,
        personality: Personality = Personality.BALANCED,
        evaluation: Optional[HandEvaluation] = None,
    ) -> Optional[int]:
        """Return a bid amount (2..6) or None to pass."""
        return self.explain(hand, context, personality, evaluation).amount

    def explain(
        self,
        hand: Sequence[Card],
        context: TableContext,
        personality: Personality = Personality.BALANCED,
        evaluation: Optional[HandEvaluation] = None,
    ) -> BidDecision:
        if evaluation is None:
            evaluation = evaluate_hand(hand)
        strength = evaluation.overall_strength

        decision = BidDecision(
            amount=None,
            strength=strength,
            band=strength_band(strength),
            min_bid=context.min_bid,
        )

        threshold = base_threshold(strength)
        decision.threshold_steps.append(("base", threshold))

        threshold *= profile_factor(personality, strength) * self.jitter()
        decision.threshold_steps.append(("profile", threshold))

        threshold *= position_factor(context)
        decision.threshold_steps.append(("position", threshold))

        threshold *= score_factor(context)
        decision.threshold_steps.append(("score", threshold))

        threshold *= partnership_factor(context)
        decision.threshold_steps.append(("partnership", threshold))

        self._finalize(decision, context, threshold)

        logger.debug(
            "%s (%s) strength=%d steps=%s -> %s",
            context.player_id,
            personality.value,
            strength,
            ", ".join(f"{name}={value:.3f}" for name, value in decision.threshold_steps),
            "pass" if decision.passed else f"bid {decision.amount}",
        )
        return decision

    @staticmethod
    def _finalize(decision: BidDecision, context: TableContext, threshold: float) -> None:
        min_bid = decision.min_bid
        if min_bid > MAX_BID:
            decision.reason = "no legal bid above the standing bid"
            return
        standing = context.current_bid
        if standing is not None and standing.player_id == context.partner_id:
            decision.reason = "partner holds the standing bid"
            return
        if threshold > PASS_CUTOFF:
            decision.reason = "threshold above pass cutoff"
            return

        natural = suggested_amount(decision.strength)
        amount = min(max(natural, min_bid), MAX_BID)

        if amount > natural + 1:
            decision.reason = "standing bid is beyond what the hand supports"
            return
        if amount > min_bid + 1 and threshold > OVERCOMMIT_CUTOFF:
            decision.reason = "would overcommit with a cautious threshold"
            return

        decision.amount = amount
        decision.reason = "bid"
