# setback_arena/agents/random_agent.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import random

from ..state import MAX_BID
from .base import SeatAgent


@dataclass
class RandomAgent(SeatAgent):
    """
    Baseline seat used to fuzz the table:

    - choose_bid: pass or make the minimum legal bid, each half the time.
    - choose_card: pick uniformly among legal cards.
    """

    rng: random.Random
    pass_rate: float = 0.5

    def choose_bid(self, observation: Dict[str, Any]) -> Optional[int]:
        min_bid = observation["min_bid"]
        if min_bid > MAX_BID or self.rng.random() < self.pass_rate:
            return None
        return min_bid

    def choose_card(self, observation: Dict[str, Any]) -> str:
        return self.rng.choice(observation["legal_card_ids"])
