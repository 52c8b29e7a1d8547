# setback_arena/table.py
from __future__ import annotations

import copy
import logging
import random
from typing import Any, Callable, List, Optional

from . import events
from .cards import Card, Shoe, sort_hand
from .events import EventBus
from .rules import (
    game_winner,
    is_bidding_complete,
    legal_cards,
    score_hand,
    validate_bid,
    winner_of_trick,
)
from .state import (
    CARDS_PER_HAND,
    MIN_BID,
    NUM_PLAYERS,
    SEAT_ORDER,
    TRICKS_PER_HAND,
    Bid,
    GameConfig,
    GamePhase,
    GameState,
    HandRecord,
    HandState,
    InvariantError,
    Partnership,
    PlayerState,
    Trick,
    TrickRecord,
)

logger = logging.getLogger(__name__)


def player_id_for(index: int) -> str:
    return f"player_{index}"


class Table:
    """
    Authoritative Setback game state and the only thing that mutates it.

    Every public action either applies completely and returns True, or is
    rejected with a notification and returns False without touching state.
    Listeners registered with `on` receive notifications after each change.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        shoe: Optional[Shoe] = None,
    ) -> None:
        self.config = config if config is not None else GameConfig()
        self.rng = rng if rng is not None else random.Random()
        self.shoe = shoe if shoe is not None else Shoe(self.rng)
        self.events = EventBus()
        self.state = self._initial_state()

    def _initial_state(self) -> GameState:
        players = [
            PlayerState(
                id=player_id_for(i),
                name=cfg.name,
                seat=SEAT_ORDER[i],
                partner_id=player_id_for((i + 2) % NUM_PLAYERS),
                is_human=cfg.is_human,
                is_dealer=i == 0,
            )
            for i, cfg in enumerate(self.config.players)
        ]
        partnerships = [
            Partnership(id="ns_partnership", player_ids=(player_id_for(0), player_id_for(2))),
            Partnership(id="ew_partnership", player_ids=(player_id_for(1), player_id_for(3))),
        ]
        return GameState(
            players=players,
            partnerships=partnerships,
            target_score=self.config.target_score,
        )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def on(self, name: str, callback: Callable[..., Any]) -> None:
        self.events.on(name, callback)

    def off(self, name: str, callback: Callable[..., Any]) -> None:
        self.events.off(name, callback)

    def _reject(self, event: str, reason: str, player_id: Optional[str], **details: Any) -> bool:
        logger.info("Rejected %s from %s: %s", event, player_id, reason)
        payload = {"reason": reason, "playerId": player_id}
        payload.update(details)
        self.events.emit(event, payload)
        return False

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_game_state(self) -> GameState:
        """
        Copy of the live state; changes to it never reach the table.

        Completed hands are frozen records, so the snapshot shares them and
        only the history list itself is copied.
        """
        history = self.state.completed_hands
        memo = {id(history): list(history)}
        return copy.deepcopy(self.state, memo)

    def get_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.state.players:
            if player.id == player_id:
                return copy.deepcopy(player)
        return None

    def get_partnership(self, player_id: str) -> Optional[Partnership]:
        partnership = self.state.partnership_of(player_id)
        return copy.deepcopy(partnership) if partnership is not None else None

    def is_game_over(self) -> bool:
        return self.state.phase == GamePhase.GAME_OVER

    def current_player(self) -> PlayerState:
        return copy.deepcopy(self.state.current_player)

    def legal_cards(self, player_id: str) -> List[Card]:
        """Cards `player_id` could play right now; empty when it is not their turn."""
        if self.state.phase != GamePhase.PLAYING:
            return []
        player = self.state.current_player
        if player.id != player_id:
            return []
        return legal_cards(player.hand, self.state.hand.current_trick, self.state.hand.trump_suit)

    # -------------------------------------------------------------------------
    # Dealing and bidding
    # -------------------------------------------------------------------------

    def start_game(self) -> bool:
        if self.state.phase != GamePhase.SETUP:
            return self._reject(
                events.INVALID_ACTION,
                "Game has already started",
                None,
                action="startGame",
            )

        logger.info(
            "Starting game to %d: %s",
            self.state.target_score,
            ", ".join(p.name for p in self.state.players),
        )
        self.state.phase = GamePhase.DEALING
        self._deal_hand()
        self.events.emit(events.GAME_STARTED, self.get_game_state())
        self._start_bidding()
        return True

    def _deal_hand(self) -> None:
        needed = NUM_PLAYERS * CARDS_PER_HAND
        if self.shoe.remaining() < needed:
            remaining = self.shoe.remaining()
            self.shoe.reset()
            logger.info("Reshuffled shoe (%d left, %d needed)", remaining, needed)
            self.events.emit(
                events.DECK_RESHUFFLED,
                {"remaining": self.shoe.remaining(), "needed": needed},
            )

        players = self.state.players
        for player in players:
            player.hand = []

        first = (self.state.dealer_index() + 1) % NUM_PLAYERS
        for _ in range(CARDS_PER_HAND):
            for offset in range(NUM_PLAYERS):
                card = self.shoe.deal()
                if card is None:
                    raise InvariantError("Shoe ran out of cards while dealing")
                players[(first + offset) % NUM_PLAYERS].hand.append(card)

        for player in players:
            sort_hand(player.hand)

    def _start_bidding(self) -> None:
        hand = self.state.hand
        self.state.phase = GamePhase.BIDDING
        hand.bidding_active = True
        hand.current_bid = None
        hand.bids = []
        hand.turn_index = (self.state.dealer_index() + 1) % NUM_PLAYERS
        logger.debug("Bidding opens with %s", self.state.current_player.id)
        self.events.emit(events.BIDDING_STARTED, self.get_game_state())

    def place_bid(self, player_id: str, amount: Optional[int]) -> bool:
        """Place a live bid of `amount` (2..6) or pass with `amount=None`."""
        if self.state.phase != GamePhase.BIDDING:
            return self._reject(events.BID_REJECTED, "Not in bidding phase", player_id, amount=amount)

        hand = self.state.hand
        if self.state.current_player.id != player_id:
            return self._reject(events.BID_REJECTED, "Not your turn", player_id, amount=amount)

        reason = validate_bid(amount, hand.current_bid)
        if reason is not None:
            return self._reject(events.BID_REJECTED, reason, player_id, amount=amount)

        bid = Bid(player_id=player_id, amount=amount or 0, passed=amount is None)
        hand.bids.append(bid)
        if not bid.passed:
            hand.current_bid = bid
        hand.turn_index = (hand.turn_index + 1) % NUM_PLAYERS

        logger.debug("%s %s", player_id, "passes" if bid.passed else f"bids {bid.amount}")
        self.events.emit(events.BID_PLACED, bid, self.get_game_state())

        if is_bidding_complete(hand.bids, hand.current_bid):
            self._end_bidding()
        return True

    def _end_bidding(self) -> None:
        hand = self.state.hand
        final_bid = hand.current_bid
        if final_bid is None:
            dealer = self.state.players[self.state.dealer_index()]
            final_bid = Bid(player_id=dealer.id, amount=MIN_BID)
            hand.current_bid = final_bid
            logger.info("All passed; dealer %s is stuck with %d", dealer.id, MIN_BID)

        self.state.phase = GamePhase.PLAYING
        hand.bidding_active = False
        hand.turn_index = self.state.player_index(final_bid.player_id)

        logger.info("Bidding won by %s for %d", final_bid.player_id, final_bid.amount)
        self.events.emit(events.BIDDING_ENDED, final_bid, self.get_game_state())
        self.events.emit(events.PLAY_STARTED, self.get_game_state())

    # -------------------------------------------------------------------------
    # Trick play
    # -------------------------------------------------------------------------

    def play_card(self, player_id: str, card_id: str) -> bool:
        if self.state.phase != GamePhase.PLAYING:
            return self._reject(events.INVALID_PLAY, "Not in playing phase", player_id, cardId=card_id)

        player = self.state.current_player
        if player.id != player_id:
            return self._reject(events.INVALID_PLAY, "Not your turn", player_id, cardId=card_id)

        card = next((c for c in player.hand if c.card_id == card_id), None)
        if card is None:
            return self._reject(
                events.INVALID_PLAY, "Card not found in player hand", player_id, cardId=card_id
            )

        hand = self.state.hand
        if card.is_wild and hand.trump_suit is None:
            return self._reject(
                events.INVALID_PLAY,
                "Joker cannot be led before trump is set",
                player_id,
                cardId=card_id,
            )

        trick = hand.current_trick
        if trick is not None and trick.plays:
            if not card.can_follow(trick.lead_suit, player.hand, hand.trump_suit, trick.lead_card):
                return self._reject(
                    events.INVALID_PLAY,
                    "Must follow lead suit when possible",
                    player_id,
                    cardId=card_id,
                )

        self._apply_card(player, card)
        return True

    def _apply_card(self, player: PlayerState, card: Card) -> None:
        hand = self.state.hand
        player.hand.remove(card)

        trump_set = False
        if hand.trump_suit is None:
            hand.trump_suit = card.suit
            trump_set = True
            logger.info("Trump is %s", card.suit.value)

        if hand.current_trick is None:
            hand.current_trick = Trick(
                id=f"trick_{len(hand.tricks)}",
                lead_suit=card.effective_suit(hand.trump_suit),
            )
        trick = hand.current_trick
        trick.plays.append((player.id, card))

        trick_full = len(trick.plays) == NUM_PLAYERS
        if not trick_full:
            hand.turn_index = (hand.turn_index + 1) % NUM_PLAYERS

        if trump_set:
            self.events.emit(events.TRUMP_ESTABLISHED, hand.trump_suit)
        self.events.emit(
            events.CARD_PLAYED,
            {"playerId": player.id, "card": card, "trickState": copy.deepcopy(trick)},
        )

        if trick_full:
            self._complete_trick()

    def _complete_trick(self) -> None:
        hand = self.state.hand
        trick = hand.current_trick
        if trick is None:
            raise InvariantError("No open trick to complete")

        winner_id = winner_of_trick(trick, hand.trump_suit)
        trick.seal(winner_id)
        hand.tricks.append(trick)
        hand.current_trick = None
        hand.turn_index = self.state.player_index(winner_id)

        logger.debug("%s won by %s", trick.id, winner_id)
        self.events.emit(events.TRICK_COMPLETE, copy.deepcopy(trick))

        if len(hand.tricks) == TRICKS_PER_HAND:
            self._complete_hand()

    # -------------------------------------------------------------------------
    # Scoring and hand rotation
    # -------------------------------------------------------------------------

    def _complete_hand(self) -> None:
        hand = self.state.hand
        for player in self.state.players:
            if player.hand:
                raise InvariantError(f"{player.id} still holds cards after the last trick")

        self.state.phase = GamePhase.SCORING
        self.events.emit(events.HAND_COMPLETED, copy.deepcopy(hand))

        score = score_hand(hand.tricks, hand.trump_suit, hand.current_bid, self.state.partnerships)
        for partnership in self.state.partnerships:
            partnership.score += score.deltas[partnership.id]

        scores_after = {p.id: p.score for p in self.state.partnerships}
        self.state.completed_hands.append(
            HandRecord(
                hand_index=self.state.hand_index,
                dealer_id=self.state.players[self.state.dealer_index()].id,
                final_bid=hand.current_bid,
                trump_suit=hand.trump_suit,
                tricks=tuple(TrickRecord.from_trick(t) for t in hand.tricks),
                score=score,
                scores_after=scores_after,
            )
        )
        logger.info(
            "Hand %d scored: bid %d by %s %s; scores %s",
            self.state.hand_index + 1,
            score.bid_amount,
            score.bidding_partnership_id,
            "made" if score.bid_made else "set",
            scores_after,
        )
        self.events.emit(events.HAND_SCORED, score)

        winner = game_winner(
            self.state.partnerships,
            self.state.target_score,
            score.bidding_partnership_id,
        )
        if winner is not None:
            self.state.winner = winner
            self.state.phase = GamePhase.GAME_OVER
            logger.info("Game over: %s wins with %d", winner.id, winner.score)
            self.events.emit(events.GAME_ENDED, copy.deepcopy(winner))
            return

        self.events.emit(events.HAND_COMPLETE, copy.deepcopy(hand))
        if self.config.auto_next_hand:
            self.start_next_hand()

    def start_next_hand(self) -> bool:
        if self.state.phase != GamePhase.SCORING:
            return self._reject(
                events.INVALID_ACTION,
                "Next hand can only start after scoring",
                None,
                action="startNextHand",
            )

        self._rotate_dealer()
        self.state.hand = HandState()
        self.state.hand_index += 1
        self.state.phase = GamePhase.DEALING
        self._deal_hand()

        logger.info("Starting hand %d", self.state.hand_index + 1)
        self.events.emit(events.NEXT_HAND_STARTED, self.get_game_state())
        self._start_bidding()
        return True

    def _rotate_dealer(self) -> None:
        players = self.state.players
        current = self.state.dealer_index()
        nxt = (current + 1) % NUM_PLAYERS
        players[current].is_dealer = False
        players[nxt].is_dealer = True
        self.events.emit(events.DEALER_ROTATED, copy.deepcopy(players[nxt]))
