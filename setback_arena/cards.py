# setback_arena/cards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
import enum
import random


class Suit(enum.Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)

    @property
    def partner_suit(self) -> "Suit":
        """The other suit of the same color."""
        return _PARTNER_SUITS[self]


_PARTNER_SUITS = {
    Suit.HEARTS: Suit.DIAMONDS,
    Suit.DIAMONDS: Suit.HEARTS,
    Suit.CLUBS: Suit.SPADES,
    Suit.SPADES: Suit.CLUBS,
}

TWO = 2
TEN = 10
JACK = 11
QUEEN = 12
KING = 13
ACE = 14
WILD_RANK = 15

WILD_CARD_ID = "joker"
DECK_SIZE = 53

_POINT_VALUES = {JACK: 1, QUEEN: 2, KING: 3, ACE: 4, TEN: 10}
_RANK_NAMES = {JACK: "Jack", QUEEN: "Queen", KING: "King", ACE: "Ace"}

# Trump tiers used by compare_for_trump.
_TIER_NONE = 0
_TIER_TRUMP = 1
_TIER_OFF_JACK = 2
_TIER_TRUMP_JACK = 3
_TIER_WILD = 4


@dataclass(frozen=True)
class Card:
    """
    One of the 53 cards in a Setback shoe.

    - Ranked cards: suit in Suit, rank 2–14 (Jack=11 .. Ace=14).
    - The wild card (Joker): suit=None, rank=WILD_RANK.
    """
    suit: Optional[Suit]
    rank: int

    def __post_init__(self) -> None:
        if self.rank == WILD_RANK:
            if self.suit is not None:
                raise ValueError("The wild card must not have a suit")
        else:
            if self.suit is None:
                raise ValueError("Ranked cards must have a suit")
            if not (TWO <= self.rank <= ACE):
                raise ValueError("Card rank must be between 2 and 14")

    @property
    def is_wild(self) -> bool:
        return self.rank == WILD_RANK

    @property
    def card_id(self) -> str:
        if self.is_wild:
            return WILD_CARD_ID
        return f"{self.suit.value}_{self.rank}"

    @property
    def point_value(self) -> int:
        """Small-point value counted towards the Game point."""
        if self.is_wild:
            return 0
        return _POINT_VALUES.get(self.rank, 0)

    def is_off_card(self, trump_suit: Optional[Suit]) -> bool:
        """True for the Jack of the other suit sharing the trump color."""
        if trump_suit is None or self.is_wild or self.rank != JACK:
            return False
        return self.suit == trump_suit.partner_suit

    def is_trump(self, trump_suit: Optional[Suit]) -> bool:
        if trump_suit is None:
            return False
        if self.is_wild:
            return True
        if self.suit == trump_suit:
            return True
        return self.is_off_card(trump_suit)

    def effective_suit(self, trump_suit: Optional[Suit]) -> Optional[Suit]:
        """Suit this card counts as for following; trump cards count as trump."""
        if self.is_trump(trump_suit):
            return trump_suit
        return self.suit

    def trump_tier(self, trump_suit: Optional[Suit]) -> int:
        if not self.is_trump(trump_suit):
            return _TIER_NONE
        if self.is_wild:
            return _TIER_WILD
        if self.rank == JACK and self.suit == trump_suit:
            return _TIER_TRUMP_JACK
        if self.is_off_card(trump_suit):
            return _TIER_OFF_JACK
        return _TIER_TRUMP

    def compare_for_trump(self, other: "Card", trump_suit: Optional[Suit]) -> int:
        """
        Compare two cards under a trump suit.

        Returns a positive number if self ranks higher, negative if lower and
        0 if they are equivalent. Order: wild > trump Jack > off-Jack > other
        trumps by rank > any non-trump; non-trumps compare by rank.
        """
        tier = self.trump_tier(trump_suit)
        other_tier = other.trump_tier(trump_suit)
        if tier != other_tier:
            return tier - other_tier
        if tier in (_TIER_WILD, _TIER_TRUMP_JACK, _TIER_OFF_JACK):
            return 0
        return self.rank - other.rank

    def can_follow(
        self,
        lead_suit: Optional[Suit],
        hand: Iterable["Card"],
        trump_suit: Optional[Suit],
        lead_card: Optional["Card"] = None,
    ) -> bool:
        """
        Whether this card may be played given what was led.

        - Nothing led: any non-wild card; the wild card only once trump is set.
        - Something led: the card must share the led effective suit (trump when
          the lead card was trump) unless the hand holds no such card.
        """
        if lead_suit is None:
            return not self.is_wild or trump_suit is not None

        led = lead_suit
        if lead_card is not None and lead_card.is_trump(trump_suit):
            led = trump_suit

        if self.effective_suit(trump_suit) == led:
            return True

        holds_led = any(c.effective_suit(trump_suit) == led for c in hand)
        return not holds_led

    @property
    def display_name(self) -> str:
        if self.is_wild:
            return "Joker"
        rank_name = _RANK_NAMES.get(self.rank, str(self.rank))
        return f"{rank_name} of {self.suit.value.title()}"

    def __str__(self) -> str:
        if self.is_wild:
            return "Jo"
        rank_name = _RANK_NAMES.get(self.rank, str(self.rank))
        return f"{rank_name[0] if self.rank > TEN else rank_name}{self.suit.name[0]}"


WILD_CARD = Card(None, WILD_RANK)


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to a JSON-serializable dict."""
    return {
        "id": card.card_id,
        "suit": card.suit.value if card.suit is not None else None,
        "rank": card.rank,
    }


def dict_to_card(data: Dict[str, Any]) -> Card:
    """Convert a dict back into a Card."""
    suit = Suit(data["suit"]) if data.get("suit") is not None else None
    return Card(suit, int(data["rank"]))


def card_from_id(card_id: str) -> Card:
    """Parse a card id such as 'hearts_11' or 'joker'."""
    if card_id == WILD_CARD_ID:
        return WILD_CARD
    suit_name, _, rank = card_id.partition("_")
    try:
        return Card(Suit(suit_name), int(rank))
    except ValueError as exc:
        raise ValueError(f"Malformed card id: {card_id!r}") from exc


def full_deck() -> List[Card]:
    """All 53 cards: 13 ranks in each of 4 suits plus the wild card."""
    cards = [Card(suit, rank) for suit in Suit for rank in range(TWO, ACE + 1)]
    cards.append(WILD_CARD)
    return cards


def sort_hand(hand: List[Card]) -> None:
    """Sort in place: wild card first, then by suit name, then by rank."""
    hand.sort(key=lambda c: (not c.is_wild, c.suit.value if c.suit else "", c.rank))


class Shoe:
    """
    The 53-card shoe the table deals from.

    Cards are dealt without replacement until `reset()` rebuilds and
    reshuffles the full shoe.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.cards: List[Card] = []
        self.reset()

    def reset(self) -> None:
        self.cards = full_deck()
        if len(self.cards) != DECK_SIZE:
            raise RuntimeError("Shoe must contain exactly 53 cards")
        self.rng.shuffle(self.cards)

    def deal(self) -> Optional[Card]:
        """Deal one card from the top, or None when the shoe is empty."""
        if not self.cards:
            return None
        return self.cards.pop()

    def deal_many(self, count: int) -> List[Card]:
        """Deal up to `count` cards; fewer come back if the shoe runs out."""
        dealt: List[Card] = []
        for _ in range(count):
            card = self.deal()
            if card is None:
                break
            dealt.append(card)
        return dealt

    def peek(self) -> Optional[Card]:
        return self.cards[-1] if self.cards else None

    def remaining(self) -> int:
        return len(self.cards)

    def is_empty(self) -> bool:
        return not self.cards
