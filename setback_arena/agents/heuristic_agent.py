# setback_arena/agents/heuristic_agent.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import random

from ..bidding import BidDecision, BiddingEngine, Personality, TableContext
from ..cards import JACK, Card, Suit, dict_to_card, full_deck
from ..evaluator import best_trump_suit
from ..rules import card_beats
from .base import SeatAgent


def _parse_suit(value: Optional[str]) -> Optional[Suit]:
    return Suit(value) if value is not None else None


def _card_power(card: Card, trump_suit: Optional[Suit], lead_suit: Optional[Suit]) -> int:
    """Rough strength of a card in the current trick, higher is stronger."""
    if card.is_wild:
        return 100
    if trump_suit is not None and card.rank == JACK and card.suit == trump_suit:
        return 95
    if card.is_off_card(trump_suit):
        return 90
    if card.is_trump(trump_suit):
        return 70 + card.rank
    if lead_suit is not None and card.suit == lead_suit:
        return 40 + card.rank
    return 20 + card.rank


def _pick_by_power(
    rng: random.Random,
    cards: List[Card],
    trump_suit: Optional[Suit],
    lead_suit: Optional[Suit],
    *,
    pick_max: bool,
) -> Card:
    powers = {c: _card_power(c, trump_suit, lead_suit) for c in cards}
    best_value = max(powers.values()) if pick_max else min(powers.values())
    candidates = [c for c in cards if powers[c] == best_value]
    return rng.choice(candidates)


def _trick_plays(trick: Dict[str, Any]) -> List[Tuple[str, Card]]:
    return [(play["player_id"], dict_to_card(play["card"])) for play in trick.get("plays", [])]


def _played_cards(observation: Dict[str, Any]) -> List[Card]:
    played: List[Card] = []
    for trick in observation.get("trick_history", []):
        played.extend(card for _pid, card in _trick_plays(trick))
    played.extend(card for _pid, card in _trick_plays(observation.get("current_trick", {})))
    return played


def _top_remaining_trump(
    trump_suit: Suit,
    played: List[Card],
) -> Optional[Card]:
    """Highest trump not yet played; cards in our own hand count as unplayed."""
    gone = set(played)
    remaining = [c for c in full_deck() if c.is_trump(trump_suit) and c not in gone]
    best: Optional[Card] = None
    for card in remaining:
        if best is None or card.compare_for_trump(best, trump_suit) > 0:
            best = card
    return best


@dataclass
class HeuristicAgent(SeatAgent):
    """
    Rule-of-thumb Setback player.

    - choose_bid: delegates to BiddingEngine with this seat's personality.
    - choose_card:
        * opening lead of the hand: strongest card of the best trump suit;
        * later leads: cash the top remaining trump, else lead low off-suit;
        * following: duck under a winning partner, otherwise win as cheaply
          as possible, otherwise throw the lowest card.
    """

    rng: random.Random
    personality: Personality = Personality.BALANCED
    bidding: BiddingEngine = field(init=False)
    last_decision: Optional[BidDecision] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.bidding = BiddingEngine(self.rng)

    def choose_bid(self, observation: Dict[str, Any]) -> Optional[int]:
        hand = [dict_to_card(c) for c in observation["hand"]]
        context: TableContext = observation["context"]
        self.last_decision = self.bidding.explain(hand, context, self.personality)
        return self.last_decision.amount

    def choose_card(self, observation: Dict[str, Any]) -> str:
        hand = [dict_to_card(c) for c in observation["hand"]]
        legal_ids = set(observation["legal_card_ids"])
        legal = [c for c in hand if c.card_id in legal_ids]
        if not legal:
            raise ValueError("No legal cards in observation")

        trump_suit = _parse_suit(observation.get("trump"))
        current_trick = observation.get("current_trick", {})
        plays = _trick_plays(current_trick)

        if not plays:
            card = self._choose_lead(hand, legal, trump_suit, observation)
        else:
            lead_suit = _parse_suit(current_trick.get("lead_suit"))
            card = self._choose_follow(legal, plays, trump_suit, lead_suit, observation)
        return card.card_id

    def _choose_lead(
        self,
        hand: List[Card],
        legal: List[Card],
        trump_suit: Optional[Suit],
        observation: Dict[str, Any],
    ) -> Card:
        if trump_suit is None:
            # This lead names trump.
            suit, _strength = best_trump_suit(hand)
            in_suit = [c for c in legal if c.suit == suit]
            pool = in_suit or legal
            return max(pool, key=lambda c: c.rank)

        trumps = [c for c in legal if c.is_trump(trump_suit)]
        top = _top_remaining_trump(trump_suit, _played_cards(observation))
        if top is not None and top in trumps:
            return top

        off_suit = [c for c in legal if not c.is_trump(trump_suit)]
        if off_suit:
            return _pick_by_power(self.rng, off_suit, trump_suit, None, pick_max=False)
        return _pick_by_power(self.rng, legal, trump_suit, None, pick_max=False)

    def _choose_follow(
        self,
        legal: List[Card],
        plays: List[Tuple[str, Card]],
        trump_suit: Optional[Suit],
        lead_suit: Optional[Suit],
        observation: Dict[str, Any],
    ) -> Card:
        winner_id, winning_card = plays[0]
        for pid, card in plays[1:]:
            if card_beats(card, winning_card, trump_suit, lead_suit):
                winner_id, winning_card = pid, card

        partner_id = observation["player"]["partner_id"]
        if winner_id == partner_id:
            return _pick_by_power(self.rng, legal, trump_suit, lead_suit, pick_max=False)

        winners = [c for c in legal if card_beats(c, winning_card, trump_suit, lead_suit)]
        if winners:
            return _pick_by_power(self.rng, winners, trump_suit, lead_suit, pick_max=False)
        return _pick_by_power(self.rng, legal, trump_suit, lead_suit, pick_max=False)
