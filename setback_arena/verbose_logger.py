# setback_arena/verbose_logger.py
from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from . import events
from .table import Table


def _describe(name: str, payload: tuple) -> str:
    """One human-readable line for a table notification."""
    first: Any = payload[0] if payload else None

    if name == events.GAME_STARTED:
        return f"Game started, playing to {first.target_score}"
    if name == events.BIDDING_STARTED:
        dealer = first.players[first.dealer_index()]
        return f"Hand {first.hand_index + 1}: {dealer.name} deals, bidding opens"
    if name == events.BID_PLACED:
        return f"{first.player_id} passes" if first.passed else f"{first.player_id} bids {first.amount}"
    if name == events.BIDDING_ENDED:
        return f"Bidding won by {first.player_id} for {first.amount}"
    if name == events.TRUMP_ESTABLISHED:
        return f"Trump is {first.value}"
    if name == events.CARD_PLAYED:
        return f"{first['playerId']} plays {first['card'].display_name}"
    if name == events.TRICK_COMPLETE:
        return f"{first.id} won by {first.winner_id}"
    if name == events.HAND_SCORED:
        outcome = "made" if first.bid_made else "set"
        return (
            f"{first.bidding_partnership_id} {outcome} their bid of {first.bid_amount}; "
            f"points {first.points}, deltas {first.deltas}"
        )
    if name == events.DEALER_ROTATED:
        return f"Deal passes to {first.name}"
    if name == events.GAME_ENDED:
        return f"Game over: {first.id} wins with {first.score}"
    if name == events.DECK_RESHUFFLED:
        return f"Shoe reshuffled ({first['remaining']} cards, {first['needed']} needed)"
    if name in events.REJECTION_EVENTS:
        return f"REJECTED {name} from {first['playerId']}: {first['reason']}"
    return name


class VerboseGameLogger:
    """Accumulates detailed, turn-by-turn logs for Setback games."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: List[str] = []
        self._current: Dict[Optional[str], List[str]] = {}
        self._lock = Lock()

    def attach(self, table: Table, game_id: Optional[str] = None) -> None:
        """Record every notification `table` emits under `game_id`."""

        def listener(name: str, *payload: Any) -> None:
            self.log_event(game_id=game_id, name=name, payload=payload)
            if name == events.GAME_ENDED:
                self.end_game(game_id)

        table.events.on_any(listener)

    def log_event(self, *, game_id: Optional[str], name: str, payload: tuple) -> None:
        line = _describe(name, payload)
        with self._lock:
            self._current.setdefault(game_id, []).append(line)

    def end_game(self, game_id: Optional[str]) -> None:
        """Close the block of lines collected for `game_id`."""
        with self._lock:
            lines = self._current.pop(game_id, [])
            if lines:
                header = f"=== Game: {game_id} ===" if game_id is not None else "=== Game ==="
                self._entries.append("\n".join([header] + lines))

    def flush(self) -> None:
        for game_id in list(self._current):
            self.end_game(game_id)
        with self._lock:
            if not self._entries:
                return
            to_write = "\n\n".join(self._entries)
            self._entries.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(to_write, encoding="utf-8")


class FailureLogger:
    """Captures only rejected actions so they are recorded separately."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: List[str] = []
        self._lock = Lock()

    def attach(self, table: Table, game_id: Optional[str] = None) -> None:
        for name in events.REJECTION_EVENTS:
            table.on(name, self._listener_for(name, table, game_id))

    def _listener_for(self, name: str, table: Table, game_id: Optional[str]):
        def listener(payload: Dict[str, Any]) -> None:
            state = table.get_game_state()
            self.log_failure(
                event=name,
                game_id=game_id,
                hand_index=state.hand_index,
                phase=state.phase.value,
                payload=payload,
            )

        return listener

    def log_failure(
        self,
        *,
        event: str,
        game_id: Optional[str],
        hand_index: Optional[int],
        phase: Optional[str],
        payload: Dict[str, Any],
    ) -> None:
        header_parts = [f"Event: {event}"]
        if game_id is not None:
            header_parts.append(f"Game: {game_id}")
        if hand_index is not None:
            header_parts.append(f"Hand: {hand_index}")
        if phase is not None:
            header_parts.append(f"Phase: {phase}")
        header = " | ".join(header_parts)

        lines = [
            f"=== {header} ===",
            f"Player: {payload.get('playerId')}",
            f"Reason: {payload.get('reason')}",
        ]
        extra = {k: v for k, v in payload.items() if k not in ("playerId", "reason")}
        if extra:
            lines.append(f"Details: {extra!r}")

        entry = "\n".join(lines).strip()
        with self._lock:
            self._entries.append(entry)

    def flush(self) -> None:
        with self._lock:
            if not self._entries:
                return
            to_write = "\n\n".join(self._entries)
            self._entries.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(to_write, encoding="utf-8")
