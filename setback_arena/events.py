# setback_arena/events.py
"""
Named state-change notifications emitted by the Table.

Listeners are plain callables registered per event name (or for every event
with `on_any`). They run synchronously, in registration order, after the
Table has finished mutating its state.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

GAME_STARTED = "gameStarted"
BIDDING_STARTED = "biddingStarted"
BID_PLACED = "bidPlaced"
BID_REJECTED = "bidRejected"
BIDDING_ENDED = "biddingEnded"
PLAY_STARTED = "playStarted"
TRUMP_ESTABLISHED = "trumpEstablished"
CARD_PLAYED = "cardPlayed"
INVALID_PLAY = "invalidPlay"
TRICK_COMPLETE = "trickComplete"
HAND_COMPLETED = "handCompleted"
HAND_SCORED = "handScored"
HAND_COMPLETE = "handComplete"
NEXT_HAND_STARTED = "nextHandStarted"
DEALER_ROTATED = "dealerRotated"
GAME_ENDED = "gameEnded"
DECK_RESHUFFLED = "deckReshuffled"
INVALID_ACTION = "invalidAction"

ALL_EVENTS = (
    GAME_STARTED,
    BIDDING_STARTED,
    BID_PLACED,
    BID_REJECTED,
    BIDDING_ENDED,
    PLAY_STARTED,
    TRUMP_ESTABLISHED,
    CARD_PLAYED,
    INVALID_PLAY,
    TRICK_COMPLETE,
    HAND_COMPLETED,
    HAND_SCORED,
    HAND_COMPLETE,
    NEXT_HAND_STARTED,
    DEALER_ROTATED,
    GAME_ENDED,
    DECK_RESHUFFLED,
    INVALID_ACTION,
)

REJECTION_EVENTS = (BID_REJECTED, INVALID_PLAY, INVALID_ACTION)

Listener = Callable[..., Any]


class EventBus:
    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)
        self._any_listeners: List[Listener] = []

    def on(self, name: str, callback: Listener) -> None:
        if name not in ALL_EVENTS:
            raise ValueError(f"Unknown event name: {name!r}")
        self._listeners[name].append(callback)

    def off(self, name: str, callback: Listener) -> None:
        listeners = self._listeners.get(name, [])
        if callback in listeners:
            listeners.remove(callback)

    def on_any(self, callback: Listener) -> None:
        """Register `callback(name, *payload)` for every event."""
        self._any_listeners.append(callback)

    def emit(self, name: str, *payload: Any) -> None:
        # Copy so a listener may unsubscribe while being notified.
        for callback in list(self._listeners.get(name, [])):
            callback(*payload)
        for callback in list(self._any_listeners):
            callback(name, *payload)
