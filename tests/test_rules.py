# tests/test_rules.py
import pytest

from setback_arena.cards import ACE, JACK, KING, QUEEN, TEN, WILD_CARD, Card, Suit
from setback_arena.rules import (
    card_beats,
    game_winner,
    is_bidding_complete,
    legal_cards,
    min_legal_bid,
    score_hand,
    validate_bid,
    winner_of_trick,
)
from setback_arena.state import Bid, InvariantError, Partnership, PointAward, Trick

H, D, C, S = Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES
NS, EW = "ns_partnership", "ew_partnership"


def _partnerships(ns: int = 0, ew: int = 0):
    return [
        Partnership(NS, ("player_0", "player_2"), score=ns),
        Partnership(EW, ("player_1", "player_3"), score=ew),
    ]


def _trick(plays, trump, trick_id="trick_0") -> Trick:
    lead_card = plays[0][1]
    return Trick(
        id=trick_id,
        plays=list(plays),
        lead_suit=lead_card.effective_suit(trump),
    )


def _sealed(plays, trump, trick_id="trick_0") -> Trick:
    trick = _trick(plays, trump, trick_id=trick_id)
    trick.seal(winner_of_trick(trick, trump))
    return trick


def test_legal_cards_on_lead():
    hand = [WILD_CARD, Card(H, 4), Card(S, 9)]
    assert legal_cards(hand, None, None) == [Card(H, 4), Card(S, 9)]
    assert legal_cards(hand, None, H) == hand
    assert legal_cards(hand, Trick(id="trick_1"), H) == hand


def test_legal_cards_follow_effective_suit():
    hand = [Card(D, JACK), Card(D, 4), Card(C, 9), WILD_CARD]
    # Diamonds led under hearts: only the plain diamond follows.
    trick = _trick([("player_1", Card(D, KING))], H)
    assert legal_cards(hand, trick, H) == [Card(D, 4)]

    # Hearts led: the off-Jack and the wild are the only hearts held.
    trick = _trick([("player_1", Card(H, 2))], H)
    assert legal_cards(hand, trick, H) == [Card(D, JACK), WILD_CARD]

    # Spades led and void: anything goes.
    trick = _trick([("player_1", Card(S, 2))], H)
    assert legal_cards(hand, trick, H) == hand


def test_card_beats():
    # Trump beats the led suit.
    assert card_beats(Card(H, 2), Card(C, ACE), H, C)
    assert not card_beats(Card(C, ACE), Card(H, 2), H, C)
    # Higher card of the led suit wins.
    assert card_beats(Card(C, KING), Card(C, QUEEN), H, C)
    # Off-suit discards never win.
    assert not card_beats(Card(S, ACE), Card(C, 3), H, C)
    # Among trumps, the trump order applies.
    assert card_beats(Card(D, JACK), Card(H, ACE), H, C)
    assert card_beats(WILD_CARD, Card(H, JACK), H, H)


def test_winner_of_trick_trump_and_led_suit():
    plays = [
        ("player_1", Card(C, 5)),
        ("player_2", Card(C, ACE)),
        ("player_3", Card(S, ACE)),
        ("player_0", Card(C, 9)),
    ]
    assert winner_of_trick(_trick(plays, H), H) == "player_2"

    plays[3] = ("player_0", Card(H, 2))
    assert winner_of_trick(_trick(plays, H), H) == "player_0"

    plays = [
        ("player_1", Card(H, ACE)),
        ("player_2", Card(D, JACK)),
        ("player_3", Card(H, JACK)),
        ("player_0", WILD_CARD),
    ]
    assert winner_of_trick(_trick(plays, H), H) == "player_0"


def test_winner_of_trick_requires_four_plays():
    trick = _trick([("player_1", Card(C, 5)), ("player_2", Card(C, 6))], H)
    with pytest.raises(InvariantError):
        winner_of_trick(trick, H)


def test_min_legal_bid():
    assert min_legal_bid(None) == 2
    assert min_legal_bid(Bid("player_1", 4)) == 5
    assert min_legal_bid(Bid("player_1", 6)) == 7


def test_validate_bid():
    assert validate_bid(None, Bid("player_1", 6)) is None
    assert validate_bid(2, None) is None
    assert validate_bid(6, Bid("player_1", 5)) is None
    assert validate_bid(1, None) == "Bid must be between 2 and 6"
    assert validate_bid(7, None) == "Bid must be between 2 and 6"
    assert validate_bid(3, Bid("player_1", 3)) == "Bid must be higher than the current bid of 3"
    assert validate_bid(2.5, None).startswith("Bid must be a whole number")
    assert validate_bid(True, None).startswith("Bid must be a whole number")


def test_bidding_complete_on_six():
    bids = [Bid("player_1", 6)]
    assert is_bidding_complete(bids, bids[0])


def test_bidding_not_complete_before_every_seat_acts():
    bids = [Bid("player_1", 3), Bid("player_2", passed=True), Bid("player_3", passed=True)]
    assert not is_bidding_complete(bids, bids[0])


def test_bidding_complete_after_three_passes():
    bids = [
        Bid("player_1", 3),
        Bid("player_2", passed=True),
        Bid("player_3", passed=True),
        Bid("player_0", passed=True),
    ]
    assert is_bidding_complete(bids, bids[0])

    bids = [
        Bid("player_1", passed=True),
        Bid("player_2", 3),
        Bid("player_3", passed=True),
        Bid("player_0", passed=True),
    ]
    assert not is_bidding_complete(bids, bids[1])
    bids.append(Bid("player_1", passed=True))
    assert is_bidding_complete(bids, bids[1])


def test_bidding_complete_when_all_pass():
    bids = [Bid(f"player_{i}", passed=True) for i in (1, 2, 3, 0)]
    assert is_bidding_complete(bids, None)


def _hand_tricks(trump=H):
    """Six sealed tricks under hearts; each side captures 15 small points."""
    return [
        _sealed(
            [
                ("player_1", Card(H, 3)),
                ("player_2", WILD_CARD),
                ("player_3", Card(H, 4)),
                ("player_0", Card(H, ACE)),
            ],
            trump,
            "trick_0",
        ),
        _sealed(
            [
                ("player_2", Card(H, JACK)),
                ("player_3", Card(H, 2)),
                ("player_0", Card(H, 5)),
                ("player_1", Card(H, 6)),
            ],
            trump,
            "trick_1",
        ),
        _sealed(
            [
                ("player_2", Card(C, TEN)),
                ("player_3", Card(C, 2)),
                ("player_0", Card(C, 3)),
                ("player_1", Card(C, 4)),
            ],
            trump,
            "trick_2",
        ),
        _sealed(
            [
                ("player_2", Card(S, 5)),
                ("player_3", Card(D, JACK)),
                ("player_0", Card(S, 6)),
                ("player_1", Card(S, 7)),
            ],
            trump,
            "trick_3",
        ),
        _sealed(
            [
                ("player_3", Card(S, ACE)),
                ("player_0", Card(S, 8)),
                ("player_1", Card(S, 9)),
                ("player_2", Card(S, 10)),
            ],
            trump,
            "trick_4",
        ),
        _sealed(
            [
                ("player_3", Card(D, 5)),
                ("player_0", Card(D, 6)),
                ("player_1", Card(D, 7)),
                ("player_2", Card(D, 8)),
            ],
            trump,
            "trick_5",
        ),
    ]


def test_score_hand_awards():
    tricks = _hand_tricks()
    assert [t.winner_id for t in tricks] == [
        "player_2", "player_2", "player_2", "player_3", "player_3", "player_2",
    ]

    score = score_hand(tricks, H, Bid("player_0", 3), _partnerships())
    # Wild is the highest trump; the two of hearts the lowest.
    assert score.high == PointAward(NS, WILD_CARD)
    assert score.low.partnership_id == EW
    assert score.low.card == Card(H, 2)
    assert score.jack.partnership_id == NS
    assert score.off_jack.partnership_id == EW
    assert score.joker.partnership_id == NS
    # NS: A(4) + J(1) + 10C(10) = 15; EW: J(1) + A(4) + 10S(10) = 15. Tie to bidders.
    assert score.game.partnership_id == NS
    assert score.game.small_points == 15
    assert score.points == {NS: 4, EW: 2}
    assert score.bid_made
    assert score.deltas == {NS: 3, EW: 2}


def test_score_hand_bidders_set():
    score = score_hand(_hand_tricks(), H, Bid("player_1", 4), _partnerships())
    # EW bid 4 but only took Low and Off-Jack; the Game tie now goes to EW.
    assert score.game.partnership_id == EW
    assert score.points == {NS: 3, EW: 3}
    assert not score.bid_made
    assert score.deltas == {NS: 3, EW: -4}


def test_score_hand_without_small_points_has_no_game():
    tricks = [
        _sealed(
            [
                ("player_1", Card(S, 2 + i)),
                ("player_2", Card(C, 2 + i)),
                ("player_3", Card(D, 2 + i)),
                ("player_0", Card(H, 2 + i)),
            ],
            S,
            f"trick_{i}",
        )
        for i in range(6)
    ]
    score = score_hand(tricks, S, Bid("player_1", 2), _partnerships())
    assert score.game is None
    assert score.jack is None and score.off_jack is None and score.joker is None
    assert score.high.card == Card(S, 7)
    assert score.low.card == Card(S, 2)
    assert score.points == {NS: 0, EW: 2}
    assert score.deltas == {NS: 0, EW: 2}


def test_score_hand_rejects_incomplete_input():
    tricks = _hand_tricks()
    with pytest.raises(InvariantError):
        score_hand(tricks, H, None, _partnerships())
    with pytest.raises(InvariantError):
        score_hand(tricks, None, Bid("player_0", 2), _partnerships())

    open_trick = _trick(
        [
            ("player_1", Card(C, 5)),
            ("player_2", Card(C, 6)),
            ("player_3", Card(C, 7)),
            ("player_0", Card(C, 8)),
        ],
        H,
    )
    with pytest.raises(InvariantError):
        score_hand([open_trick], H, Bid("player_0", 2), _partnerships())


def test_game_winner():
    assert game_winner(_partnerships(20, 18), 21) is None
    assert game_winner(_partnerships(21, 18), 21).id == NS
    assert game_winner(_partnerships(22, 25), 21).id == EW
    # Both over and tied: last bidders win.
    assert game_winner(_partnerships(23, 23), 21, bidding_partnership_id=EW).id == EW
    assert game_winner(_partnerships(23, 23), 21, bidding_partnership_id=NS).id == NS


def test_trick_seal_requires_four_plays():
    trick = _trick([("player_1", Card(C, 5))], H)
    with pytest.raises(InvariantError):
        trick.seal("player_1")
