# tests/test_cards.py
import random

import pytest

from setback_arena.cards import (
    ACE,
    DECK_SIZE,
    JACK,
    KING,
    QUEEN,
    TEN,
    WILD_CARD,
    Card,
    Shoe,
    Suit,
    card_from_id,
    card_to_dict,
    dict_to_card,
    full_deck,
    sort_hand,
)

H, D, C, S = Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES


def test_full_deck_composition():
    deck = full_deck()
    assert len(deck) == DECK_SIZE == 53
    assert len(set(deck)) == 53

    wilds = [c for c in deck if c.is_wild]
    assert wilds == [WILD_CARD]
    for suit in Suit:
        assert len([c for c in deck if c.suit == suit]) == 13


def test_card_validation():
    with pytest.raises(ValueError):
        Card(H, 1)
    with pytest.raises(ValueError):
        Card(H, 15)
    with pytest.raises(ValueError):
        Card(None, 7)
    with pytest.raises(ValueError):
        Card(S, 16)


def test_card_ids_and_parsing():
    assert Card(H, JACK).card_id == "hearts_11"
    assert WILD_CARD.card_id == "joker"
    assert card_from_id("spades_14") == Card(S, ACE)
    assert card_from_id("joker") == WILD_CARD
    with pytest.raises(ValueError):
        card_from_id("bogus_3")
    with pytest.raises(ValueError):
        card_from_id("hearts_x")


def test_card_roundtrip_dict():
    for card in (Card(D, 7), Card(C, ACE), WILD_CARD):
        assert dict_to_card(card_to_dict(card)) == card


def test_point_values():
    assert Card(H, JACK).point_value == 1
    assert Card(H, QUEEN).point_value == 2
    assert Card(H, KING).point_value == 3
    assert Card(H, ACE).point_value == 4
    assert Card(H, TEN).point_value == 10
    assert Card(H, 9).point_value == 0
    assert WILD_CARD.point_value == 0
    assert sum(c.point_value for c in full_deck()) == 4 * 20


def test_off_card_is_same_color_jack():
    assert Card(D, JACK).is_off_card(H)
    assert Card(H, JACK).is_off_card(D)
    assert Card(S, JACK).is_off_card(C)
    assert Card(C, JACK).is_off_card(S)
    assert not Card(H, JACK).is_off_card(H)
    assert not Card(S, JACK).is_off_card(H)
    assert not Card(D, QUEEN).is_off_card(H)
    assert not WILD_CARD.is_off_card(H)
    assert not Card(D, JACK).is_off_card(None)


def test_is_trump():
    assert Card(H, 2).is_trump(H)
    assert Card(D, JACK).is_trump(H)
    assert WILD_CARD.is_trump(H)
    assert not Card(D, 5).is_trump(H)
    assert not Card(S, JACK).is_trump(H)
    for card in full_deck():
        assert not card.is_trump(None)


def test_trump_order_for_every_suit():
    for trump in Suit:
        ordered = [
            WILD_CARD,
            Card(trump, JACK),
            Card(trump.partner_suit, JACK),
            Card(trump, ACE),
            Card(trump, KING),
            Card(trump, QUEEN),
            Card(trump, TEN),
            Card(trump, 2),
        ]
        for higher, lower in zip(ordered, ordered[1:]):
            assert higher.compare_for_trump(lower, trump) > 0
            assert lower.compare_for_trump(higher, trump) < 0


def test_wild_beats_every_other_card_under_any_trump():
    for trump in Suit:
        for card in full_deck():
            if card.is_wild:
                continue
            assert WILD_CARD.compare_for_trump(card, trump) > 0


def test_any_trump_beats_any_non_trump():
    lowest_trump = Card(S, 2)
    for card in full_deck():
        if not card.is_trump(S):
            assert lowest_trump.compare_for_trump(card, S) > 0


def test_compare_is_antisymmetric():
    rng = random.Random(5)
    deck = full_deck()
    for _ in range(300):
        a, b = rng.sample(deck, 2)
        trump = rng.choice(list(Suit))
        assert (a.compare_for_trump(b, trump) > 0) == (b.compare_for_trump(a, trump) < 0)


def test_effective_suit():
    assert Card(D, JACK).effective_suit(H) == H
    assert WILD_CARD.effective_suit(S) == S
    assert Card(D, 9).effective_suit(H) == D
    assert WILD_CARD.effective_suit(None) is None


def test_can_follow_no_lead():
    hand = [WILD_CARD, Card(H, 4)]
    assert Card(H, 4).can_follow(None, hand, None)
    assert not WILD_CARD.can_follow(None, hand, None)
    assert WILD_CARD.can_follow(None, hand, H)


def test_can_follow_must_follow_led_suit():
    hand = [Card(C, 5), Card(S, 9), Card(H, 3)]
    lead = Card(C, KING)
    assert Card(C, 5).can_follow(C, hand, H, lead)
    assert not Card(S, 9).can_follow(C, hand, H, lead)
    # Trump may not be used to escape following suit.
    assert not Card(H, 3).can_follow(C, hand, H, lead)


def test_can_follow_void_hand_plays_anything():
    hand = [Card(S, 9), Card(H, 3), WILD_CARD]
    lead = Card(C, KING)
    for card in hand:
        assert card.can_follow(C, hand, H, lead)


def test_wild_and_off_jack_follow_only_trump_lead():
    hand = [WILD_CARD, Card(D, JACK), Card(D, 4)]
    # Diamonds led, hearts trump: the off-Jack counts as a heart.
    lead = Card(D, KING)
    assert Card(D, 4).can_follow(D, hand, H, lead)
    assert not WILD_CARD.can_follow(D, hand, H, lead)
    assert not Card(D, JACK).can_follow(D, hand, H, lead)

    # Trump led: both follow, and the plain diamond no longer does.
    trump_hand = [WILD_CARD, Card(D, JACK), Card(D, 4)]
    trump_lead = Card(H, 9)
    assert WILD_CARD.can_follow(H, trump_hand, H, trump_lead)
    assert Card(D, JACK).can_follow(H, trump_hand, H, trump_lead)
    assert not Card(D, 4).can_follow(H, trump_hand, H, trump_lead)


def test_off_jack_lead_is_a_trump_lead():
    hand = [Card(H, 6), Card(D, 8)]
    lead = Card(D, JACK)
    # Led suit recorded as diamonds, but the lead card is trump.
    assert Card(H, 6).can_follow(D, hand, H, lead)
    assert not Card(D, 8).can_follow(D, hand, H, lead)


def test_can_follow_never_allows_off_suit_non_trump_when_holding_led_suit():
    rng = random.Random(11)
    deck = full_deck()
    for _ in range(500):
        trump = rng.choice(list(Suit))
        lead = rng.choice([c for c in deck if not c.is_wild])
        hand = rng.sample([c for c in deck if c != lead], 6)
        led = lead.effective_suit(trump)
        holds_led = any(c.effective_suit(trump) == led for c in hand)
        for card in hand:
            if card.effective_suit(trump) != led and holds_led:
                assert not card.can_follow(lead.suit, hand, trump, lead)


def test_sort_hand_wild_first_then_suit_then_rank():
    hand = [Card(S, 3), Card(C, ACE), WILD_CARD, Card(C, 2), Card(H, 9), Card(D, KING)]
    sort_hand(hand)
    assert hand == [
        WILD_CARD,
        Card(C, 2),
        Card(C, ACE),
        Card(D, KING),
        Card(H, 9),
        Card(S, 3),
    ]


def test_shoe_deals_without_replacement():
    shoe = Shoe(random.Random(3))
    assert shoe.remaining() == 53
    dealt = shoe.deal_many(53)
    assert len(dealt) == 53
    assert len(set(dealt)) == 53
    assert shoe.is_empty()
    assert shoe.deal() is None
    assert shoe.peek() is None
    assert shoe.deal_many(5) == []


def test_shoe_peek_matches_next_deal():
    shoe = Shoe(random.Random(9))
    top = shoe.peek()
    assert shoe.deal() == top
    assert shoe.remaining() == 52


def test_shoe_reset_restores_full_shoe():
    shoe = Shoe(random.Random(4))
    shoe.deal_many(30)
    shoe.reset()
    assert shoe.remaining() == 53
    assert sorted(c.card_id for c in shoe.cards) == sorted(c.card_id for c in full_deck())


def test_shuffle_determinism_with_seed():
    s1 = Shoe(random.Random(42))
    s2 = Shoe(random.Random(42))
    assert [c.card_id for c in s1.cards] == [c.card_id for c in s2.cards]
