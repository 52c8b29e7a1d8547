# setback_arena/engine.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from .agents.base import SeatAgent
from .agents.heuristic_agent import HeuristicAgent
from .bidding import Personality, TableContext
from .cards import card_to_dict
from .rules import min_legal_bid
from .state import NUM_PLAYERS, GameConfig, GamePhase, GameState, InvariantError, Trick
from .table import Table

logger = logging.getLogger(__name__)

# Default personalities, assigned by seat index.
SEAT_PERSONALITIES = [
    Personality.BALANCED,
    Personality.CONSERVATIVE,
    Personality.AGGRESSIVE,
    Personality.ADAPTIVE,
]


def _trick_to_dict(trick: Optional[Trick]) -> Dict[str, Any]:
    if trick is None:
        return {"plays": [], "lead_suit": None, "winner_id": None}
    return {
        "plays": [
            {"player_id": pid, "card": card_to_dict(card)}
            for pid, card in trick.plays
        ],
        "lead_suit": trick.lead_suit.value if trick.lead_suit else None,
        "winner_id": trick.winner_id,
    }


class GameEngine:
    """
    Drives a Table with one resolver per seat.

    AI seats act inline with no pacing. A seat whose resolver is None (a
    human seat) blocks `step()` until someone calls the Table directly.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        agents: Optional[Sequence[Optional[SeatAgent]]] = None,
        rng_seed: Optional[int] = None,
        game_label: Optional[str] = None,
    ) -> None:
        self.config = config if config is not None else GameConfig()
        self.rng = random.Random(rng_seed)
        self.game_label = game_label

        if agents is None:
            agents = [
                None
                if player.is_human
                else HeuristicAgent(
                    rng=random.Random(self.rng.getrandbits(32)),
                    personality=SEAT_PERSONALITIES[i % len(SEAT_PERSONALITIES)],
                )
                for i, player in enumerate(self.config.players)
            ]
        if len(agents) != NUM_PLAYERS:
            raise ValueError("Setback requires exactly 4 seats")
        self.agents: List[Optional[SeatAgent]] = list(agents)

        self.table = Table(self.config, rng=random.Random(self.rng.getrandbits(32)))
        self.bid_records: List[Dict[str, Any]] = []
        self.corrections = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        """Snapshot of the table state; the live state stays behind the table."""
        return self.table.get_game_state()

    def step(self) -> bool:
        """
        Advance the game by one action.

        Returns False when nothing can happen without outside input: the game
        is over, or the seat to act has no resolver.
        """
        phase = self.table.state.phase
        if phase == GamePhase.GAME_OVER:
            return False
        if phase == GamePhase.SETUP:
            return self.table.start_game()
        if phase == GamePhase.SCORING:
            return self.table.start_next_hand()

        index = self.table.state.hand.turn_index
        agent = self.agents[index]
        if agent is None:
            return False

        if phase == GamePhase.BIDDING:
            self._bid_turn(index, agent)
        elif phase == GamePhase.PLAYING:
            self._play_turn(index, agent)
        else:
            raise InvariantError(f"Unexpected phase {phase}")
        return True

    def run_until_blocked(self, max_steps: Optional[int] = None) -> int:
        """Step until blocked or `max_steps` actions were taken; return the count."""
        steps = 0
        while max_steps is None or steps < max_steps:
            if not self.step():
                break
            steps += 1
        return steps

    def play_game(self, max_hands: Optional[int] = None) -> GameState:
        """Play until game over (or `max_hands` hands) and return a snapshot."""
        while not self.table.is_game_over():
            if max_hands is not None and len(self.table.state.completed_hands) >= max_hands:
                break
            if not self.step():
                raise RuntimeError(
                    f"{self.table.state.current_player.id} has no agent; play_game needs AI at every seat"
                )

        logger.info(
            "Finished game%s after %d hands",
            f" {self.game_label}" if self.game_label else "",
            len(self.table.state.completed_hands),
        )
        return self.table.get_game_state()

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    def _bid_turn(self, index: int, agent: SeatAgent) -> None:
        player = self.table.state.players[index]
        obs = self._build_bid_observation(index)
        amount = agent.choose_bid(obs)

        if not self.table.place_bid(player.id, amount):
            # A pass is always legal.
            logger.warning(
                "%s made an illegal bid %r%s; passing instead",
                player.id,
                amount,
                f" in {self.game_label}" if self.game_label else "",
            )
            self.corrections += 1
            amount = None
            if not self.table.place_bid(player.id, None):
                raise InvariantError(f"Table refused a pass from {player.id}")

        self._record_bid(player.id, agent, obs["context"], amount)

    def _play_turn(self, index: int, agent: SeatAgent) -> None:
        player = self.table.state.players[index]
        obs = self._build_play_observation(index)
        card_id = agent.choose_card(obs)

        if not self.table.play_card(player.id, card_id):
            fallback = obs["legal_card_ids"][0]
            logger.warning(
                "%s made an illegal play %r%s; playing %s instead",
                player.id,
                card_id,
                f" in {self.game_label}" if self.game_label else "",
                fallback,
            )
            self.corrections += 1
            if not self.table.play_card(player.id, fallback):
                raise InvariantError(f"Table refused legal card {fallback} from {player.id}")

    def _record_bid(
        self,
        player_id: str,
        agent: SeatAgent,
        context: TableContext,
        amount: Optional[int],
    ) -> None:
        record: Dict[str, Any] = {
            "game_id": self.game_label,
            "hand_index": self.table.state.hand_index,
            "player_id": player_id,
            "personality": None,
            "strength": None,
            "band": None,
            "threshold": None,
            "min_bid": context.min_bid,
            "amount": amount,
            "passed": amount is None,
            "own_score": context.own_score,
            "opponent_score": context.opponent_score,
            "is_dealer": context.is_dealer,
        }
        if isinstance(agent, HeuristicAgent) and agent.last_decision is not None:
            decision = agent.last_decision
            record.update(
                {
                    "personality": agent.personality.value,
                    "strength": decision.strength,
                    "band": decision.band.name,
                    "threshold": round(decision.threshold, 4),
                }
            )
        self.bid_records.append(record)

    # -------------------------------------------------------------------------
    # Observation builders
    # -------------------------------------------------------------------------

    def _build_common_observation_base(self, index: int) -> Dict[str, Any]:
        state = self.table.state
        player = state.players[index]
        return {
            "game": {
                "game_id": self.game_label,
                "hand_index": state.hand_index,
                "dealer_id": state.players[state.dealer_index()].id,
                "target_score": state.target_score,
                "num_players": state.num_players,
            },
            "player": {
                "id": player.id,
                "name": player.name,
                "seat": player.seat.value,
                "partner_id": player.partner_id,
            },
            "scores": {p.id: p.score for p in state.partnerships},
            "hand": [card_to_dict(c) for c in player.hand],
        }

    def _build_bid_observation(self, index: int) -> Dict[str, Any]:
        state = self.table.state
        player = state.players[index]
        obs = self._build_common_observation_base(index)
        obs.update(
            {
                "phase": "bidding",
                "context": TableContext.from_state(state, player.id),
                "min_bid": min_legal_bid(state.hand.current_bid),
                "bids_so_far": [
                    {"player_id": b.player_id, "amount": b.amount, "passed": b.passed}
                    for b in state.hand.bids
                ],
            }
        )
        return obs

    def _build_play_observation(self, index: int) -> Dict[str, Any]:
        state = self.table.state
        player = state.players[index]
        hand = state.hand
        obs = self._build_common_observation_base(index)
        obs.update(
            {
                "phase": "play",
                "legal_card_ids": [c.card_id for c in self.table.legal_cards(player.id)],
                "trump": hand.trump_suit.value if hand.trump_suit else None,
                "current_trick": _trick_to_dict(hand.current_trick),
                "trick_index": len(hand.tricks),
                "trick_history": [_trick_to_dict(t) for t in hand.tricks],
                "final_bid": {
                    "player_id": hand.current_bid.player_id,
                    "amount": hand.current_bid.amount,
                }
                if hand.current_bid
                else None,
                "hand_sizes": {p.id: len(p.hand) for p in state.players},
            }
        )
        return obs
