# setback_arena/evaluator.py
"""
Hand strength analysis used by the bidding engine and the heuristic agent.

Every candidate trump suit is scored on a 0-100 scale, point cards are
totalled for the Game point, and the result is folded into a single
`overall_strength` figure. The numbers are heuristics: they only need to
order hands sensibly, not predict exact trick counts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .cards import ACE, JACK, KING, QUEEN, TEN, Card, Suit

MAX_STRENGTH = 100
POINT_CARD_CEILING = 30
MAX_TRICKS = 6

# Flat bonuses for holding the key trumps at all.
WILD_HOLDING_BONUS = 15
TRUMP_JACK_HOLDING_BONUS = 10
OFF_JACK_HOLDING_BONUS = 8

# Per-card grades for the quality of trump held.
_WILD_GRADE = 8
_TRUMP_JACK_GRADE = 7
_OFF_JACK_GRADE = 6
_RANK_GRADES = {ACE: 5, KING: 4, QUEEN: 3, TEN: 2}

TRUMP_WEIGHT = 0.6
POINTS_WEIGHT = 0.25
SPECIAL_WEIGHT = 0.15
SPECIAL_WILD = 20
SPECIAL_PER_JACK = 8


@dataclass(frozen=True)
class SpecialCards:
    has_wild: bool = False
    jack_suits: Tuple[Suit, ...] = ()


@dataclass(frozen=True)
class HandEvaluation:
    trump_strength: Dict[Suit, int]
    point_card_total: int
    special_cards: SpecialCards
    trick_potential: Dict[Suit, float]
    overall_strength: int
    best_suit: Suit = field(default=Suit.HEARTS)


def trump_cards_for(suit: Suit, hand: Sequence[Card]) -> List[Card]:
    """Cards in `hand` that would be trump if `suit` were named trump."""
    return [c for c in hand if c.is_trump(suit)]


def _high_trump_bonus(trump_cards: Sequence[Card], suit: Suit) -> int:
    bonus = 0
    for card in trump_cards:
        if card.is_wild:
            bonus += _WILD_GRADE
        elif card.rank == JACK and card.suit == suit:
            bonus += _TRUMP_JACK_GRADE
        elif card.is_off_card(suit):
            bonus += _OFF_JACK_GRADE
        else:
            bonus += _RANK_GRADES.get(card.rank, 0)
    return bonus


def evaluate_trump_strength(suit: Suit, hand: Sequence[Card]) -> int:
    trump_cards = trump_cards_for(suit, hand)
    strength = 10 * len(trump_cards)
    strength += _high_trump_bonus(trump_cards, suit)

    if any(c.is_wild for c in hand):
        strength += WILD_HOLDING_BONUS
    if any(c.rank == JACK and c.suit == suit for c in hand):
        strength += TRUMP_JACK_HOLDING_BONUS
    if any(c.is_off_card(suit) for c in hand):
        strength += OFF_JACK_HOLDING_BONUS

    return min(strength, MAX_STRENGTH)


def estimate_trick_potential(suit: Suit, hand: Sequence[Card]) -> float:
    trump_cards = trump_cards_for(suit, hand)
    tricks = min(len(trump_cards) * 0.6, 4.0)

    high_trumps = [
        c
        for c in trump_cards
        if c.is_wild or c.rank in (JACK, ACE)
    ]
    tricks += len(high_trumps) * 0.3

    side_aces = [c for c in hand if c.rank == ACE and not c.is_trump(suit)]
    tricks += len(side_aces) * 0.2

    return min(tricks, float(MAX_TRICKS))


def count_point_cards(hand: Sequence[Card]) -> int:
    return sum(c.point_value for c in hand)


def identify_special_cards(hand: Sequence[Card]) -> SpecialCards:
    return SpecialCards(
        has_wild=any(c.is_wild for c in hand),
        jack_suits=tuple(c.suit for c in hand if not c.is_wild and c.rank == JACK),
    )


def overall_strength(
    trump_strength: Dict[Suit, int],
    point_card_total: int,
    special: SpecialCards,
) -> int:
    strength = max(trump_strength.values()) * TRUMP_WEIGHT

    point_score = min(point_card_total / POINT_CARD_CEILING * 100, 100)
    strength += point_score * POINTS_WEIGHT

    special_bonus = len(special.jack_suits) * SPECIAL_PER_JACK
    if special.has_wild:
        special_bonus += SPECIAL_WILD
    strength += min(special_bonus, 100) * SPECIAL_WEIGHT

    # Half-up rounding; strength is never negative.
    return min(int(strength + 0.5), MAX_STRENGTH)


def evaluate_hand(hand: Sequence[Card]) -> HandEvaluation:
    """Score `hand` for every possible trump suit and overall."""
    trump_strength: Dict[Suit, int] = {}
    trick_potential: Dict[Suit, float] = {}
    for suit in Suit:
        trump_strength[suit] = evaluate_trump_strength(suit, hand)
        trick_potential[suit] = estimate_trick_potential(suit, hand)

    points = count_point_cards(hand)
    special = identify_special_cards(hand)
    # First suit in Suit order wins ties.
    best = max(Suit, key=lambda s: trump_strength[s])

    return HandEvaluation(
        trump_strength=trump_strength,
        point_card_total=points,
        special_cards=special,
        trick_potential=trick_potential,
        overall_strength=overall_strength(trump_strength, points, special),
        best_suit=best,
    )


def best_trump_suit(hand: Sequence[Card]) -> Tuple[Suit, int]:
    evaluation = evaluate_hand(hand)
    return evaluation.best_suit, evaluation.trump_strength[evaluation.best_suit]
