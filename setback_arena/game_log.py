# setback_arena/game_log.py
from __future__ import annotations

import csv
from typing import Any, Dict, Iterable, List, Optional

from .state import GameState, HandRecord, PointAward

FIELDNAMES = [
    "game_id",
    "hand_index",
    "dealer_id",
    "bidder_id",
    "bid",
    "trump_suit",
    "partnership_id",
    "is_bidding_partnership",
    "points_earned",
    "bid_made",
    "hand_delta",
    "total_score",
    "high",
    "low",
    "jack",
    "off_jack",
    "joker",
    "game",
]

BID_FIELDNAMES = [
    "game_id",
    "hand_index",
    "player_id",
    "personality",
    "strength",
    "band",
    "threshold",
    "min_bid",
    "amount",
    "passed",
    "own_score",
    "opponent_score",
    "is_dealer",
]

_AWARD_FIELDS = ("high", "low", "jack", "off_jack", "joker", "game")


def _award_flag(award: Optional[PointAward], partnership_id: str) -> int:
    return int(award is not None and award.partnership_id == partnership_id)


def _hand_rows(record: HandRecord, game_state: GameState, game_id: Optional[str]) -> List[Dict[str, Any]]:
    score = record.score
    rows: List[Dict[str, Any]] = []
    for partnership in game_state.partnerships:
        pid = partnership.id
        row: Dict[str, Any] = {
            "game_id": game_id,
            "hand_index": record.hand_index,
            "dealer_id": record.dealer_id,
            "bidder_id": record.final_bid.player_id,
            "bid": record.final_bid.amount,
            "trump_suit": record.trump_suit.value,
            "partnership_id": pid,
            "is_bidding_partnership": int(pid == score.bidding_partnership_id),
            "points_earned": score.points[pid],
            "bid_made": int(score.bid_made),
            "hand_delta": score.deltas[pid],
            "total_score": record.scores_after[pid],
        }
        for name in _AWARD_FIELDS:
            row[name] = _award_flag(getattr(score, name), pid)
        rows.append(row)
    return rows


def build_hand_rows(
    game_state: GameState,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Build rows summarizing each scored hand for CSV export.

    Each row corresponds to (hand, partnership) and has keys in FIELDNAMES.
    Only completed hands are included, so games stopped mid-hand can still be
    logged.
    """
    rows: List[Dict[str, Any]] = []
    for record in game_state.completed_hands:
        rows.extend(_hand_rows(record, game_state, game_id))
    return rows


def _write_rows(path, fieldnames: List[str], rows: Iterable[Dict[str, Any]]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in fieldnames})


def write_hand_scores_csv(
    game_state: GameState,
    path,
    game_id: Optional[str] = None,
) -> None:
    """
    Write per-hand scores to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    _write_rows(path, FIELDNAMES, build_hand_rows(game_state, game_id=game_id))


def write_hand_rows_csv(rows: Iterable[Dict[str, Any]], path) -> None:
    """Write rows from several games (see build_hand_rows) to one CSV."""
    _write_rows(path, FIELDNAMES, rows)


def write_bid_log_csv(records: Iterable[Dict[str, Any]], path) -> None:
    """Write bid decision records (see GameEngine.bid_records) to a CSV."""
    _write_rows(path, BID_FIELDNAMES, records)
