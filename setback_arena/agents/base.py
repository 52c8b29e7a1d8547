# setback_arena/agents/base.py
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class SeatAgent(Protocol):
    """
    Interface for anything that decides actions for one seat.

    `observation` is a dict built by the engine containing:
      - game-level info (hand index, dealer, target score)
      - player info (id, partner, seat)
      - phase-specific info (hand, bids so far and table context when
        bidding; legal card ids, the open trick and trick history when playing)
    """

    def choose_bid(self, observation: Dict[str, Any]) -> Optional[int]:
        """Return a bid amount (2..6) or None to pass."""

        raise NotImplementedError

    def choose_card(self, observation: Dict[str, Any]) -> str:
        """
        Return the id of the card to play.

        The observation will include:
          - "hand": list[card_dict]
          - "legal_card_ids": list[str]
        """
        raise NotImplementedError
