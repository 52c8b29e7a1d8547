# setback_arena/rules.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .cards import JACK, Card, Suit
from .state import (
    MAX_BID,
    MIN_BID,
    NUM_PLAYERS,
    Bid,
    HandScore,
    InvariantError,
    Partnership,
    PointAward,
    Trick,
)


def legal_cards(
    hand: Sequence[Card],
    trick: Optional[Trick],
    trump_suit: Optional[Suit],
) -> List[Card]:
    """
    Return the cards in `hand` that may legally be played into `trick`.

    - Empty or missing trick: any card except the wild card before trump is set.
    - Otherwise the led effective suit must be followed when possible.
    """
    if trick is None or not trick.plays:
        return [c for c in hand if c.can_follow(None, hand, trump_suit)]
    return [
        c
        for c in hand
        if c.can_follow(trick.lead_suit, hand, trump_suit, trick.lead_card)
    ]


def card_beats(
    challenger: Card,
    holder: Card,
    trump_suit: Optional[Suit],
    lead_suit: Optional[Suit],
) -> bool:
    """True when `challenger` takes the trick away from the current `holder`."""
    if challenger.is_trump(trump_suit) or holder.is_trump(trump_suit):
        return challenger.compare_for_trump(holder, trump_suit) > 0

    # Neither is trump: only the led suit can win.
    challenger_follows = challenger.effective_suit(trump_suit) == lead_suit
    holder_follows = holder.effective_suit(trump_suit) == lead_suit
    if challenger_follows != holder_follows:
        return challenger_follows
    return challenger_follows and challenger.rank > holder.rank


def winner_of_trick(trick: Trick, trump_suit: Optional[Suit]) -> str:
    """
    Determine the winner of a completed trick.

    Trump beats non-trump; among trumps the card trump order applies; among
    non-trumps only cards of the led suit can win, highest rank first. Ties
    keep the earlier play.
    """
    if len(trick.plays) != NUM_PLAYERS:
        raise InvariantError(
            f"Trick {trick.id} needs exactly {NUM_PLAYERS} plays, has {len(trick.plays)}"
        )

    winner_id, winning_card = trick.plays[0]
    for player_id, card in trick.plays[1:]:
        if card_beats(card, winning_card, trump_suit, trick.lead_suit):
            winner_id, winning_card = player_id, card
    return winner_id


def min_legal_bid(current_bid: Optional[Bid]) -> int:
    if current_bid is None:
        return MIN_BID
    return current_bid.amount + 1


def validate_bid(amount: Optional[int], current_bid: Optional[Bid]) -> Optional[str]:
    """Return a rejection reason for a live bid, or None if it is acceptable."""
    if amount is None:
        return None
    if isinstance(amount, bool) or not isinstance(amount, int):
        return f"Bid must be a whole number, got {amount!r}"
    if amount < MIN_BID or amount > MAX_BID:
        return f"Bid must be between {MIN_BID} and {MAX_BID}"
    if current_bid is not None and amount <= current_bid.amount:
        return f"Bid must be higher than the current bid of {current_bid.amount}"
    return None


def is_bidding_complete(
    bids: Sequence[Bid],
    current_bid: Optional[Bid],
    num_players: int = NUM_PLAYERS,
) -> bool:
    """
    Bidding closes on a bid of 6, or once every seat has acted and either
    three passes trail a live bid or the last full round was all passes.
    """
    if current_bid is not None and current_bid.amount == MAX_BID:
        return True
    if len(bids) < num_players:
        return False

    trailing = bids[-(num_players - 1):]
    if current_bid is not None and all(b.passed for b in trailing):
        return True
    return all(b.passed for b in bids[-num_players:])


def _partnership_id(partnerships: Sequence[Partnership], player_id: str) -> str:
    for partnership in partnerships:
        if player_id in partnership.player_ids:
            return partnership.id
    raise InvariantError(f"Player {player_id} has no partnership")


def score_hand(
    tricks: Sequence[Trick],
    trump_suit: Optional[Suit],
    final_bid: Optional[Bid],
    partnerships: Sequence[Partnership],
) -> HandScore:
    """
    Score a completed hand.

    - High / Low: highest and lowest trump played, credited to the
      partnership of the player who played it.
    - Jack / Off-Jack / Joker: credited to the partnership that captured the
      trick holding the card.
    - Game: the partnership capturing the most small points; a tie goes to
      the bidders and no small points at all means nobody scores it.

    The bidders gain the bid if they earned at least that many points and
    lose it otherwise; the other partnership always gains what it earned.
    """
    if final_bid is None or final_bid.passed:
        raise InvariantError("Cannot score a hand without a winning bid")
    if trump_suit is None:
        raise InvariantError("Cannot score a hand without a trump suit")

    bidders = _partnership_id(partnerships, final_bid.player_id)

    high: Optional[PointAward] = None
    low: Optional[PointAward] = None
    jack: Optional[PointAward] = None
    off_jack: Optional[PointAward] = None
    joker: Optional[PointAward] = None
    high_card: Optional[Card] = None
    low_card: Optional[Card] = None
    small_points: Dict[str, int] = {p.id: 0 for p in partnerships}

    for trick in tricks:
        if trick.winner_id is None:
            raise InvariantError(f"Trick {trick.id} was never sealed")
        captured_by = _partnership_id(partnerships, trick.winner_id)

        for player_id, card in trick.plays:
            small_points[captured_by] += card.point_value

            if card.is_trump(trump_suit):
                played_by = _partnership_id(partnerships, player_id)
                if high_card is None or card.compare_for_trump(high_card, trump_suit) > 0:
                    high_card = card
                    high = PointAward(played_by, card)
                if low_card is None or card.compare_for_trump(low_card, trump_suit) < 0:
                    low_card = card
                    low = PointAward(played_by, card)

            if card.is_wild:
                joker = PointAward(captured_by, card)
            elif card.rank == JACK and card.suit == trump_suit:
                jack = PointAward(captured_by, card)
            elif card.is_off_card(trump_suit):
                off_jack = PointAward(captured_by, card)

    game: Optional[PointAward] = None
    best = max(small_points.values()) if small_points else 0
    if best > 0:
        leaders = [pid for pid, pts in small_points.items() if pts == best]
        game_winner = bidders if bidders in leaders else leaders[0]
        game = PointAward(game_winner, small_points=best)

    points = {p.id: 0 for p in partnerships}
    for award in (high, low, jack, off_jack, joker, game):
        if award is not None:
            points[award.partnership_id] += 1

    bid_made = points[bidders] >= final_bid.amount
    deltas: Dict[str, int] = {}
    for partnership in partnerships:
        if partnership.id == bidders:
            deltas[partnership.id] = final_bid.amount if bid_made else -final_bid.amount
        else:
            deltas[partnership.id] = points[partnership.id]

    return HandScore(
        high=high,
        low=low,
        jack=jack,
        off_jack=off_jack,
        joker=joker,
        game=game,
        bidding_partnership_id=bidders,
        bid_amount=final_bid.amount,
        points=points,
        bid_made=bid_made,
        deltas=deltas,
    )


def game_winner(
    partnerships: Sequence[Partnership],
    target_score: int,
    bidding_partnership_id: Optional[str] = None,
) -> Optional[Partnership]:
    """
    Return the winning partnership once any score reaches the target.

    If both partnerships are at or past the target the higher score wins; on
    a tie the bidders of the last hand win.
    """
    reached = [p for p in partnerships if p.score >= target_score]
    if not reached:
        return None
    top = max(p.score for p in reached)
    leaders = [p for p in reached if p.score == top]
    for p in leaders:
        if p.id == bidding_partnership_id:
            return p
    return leaders[0]
