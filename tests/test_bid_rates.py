# tests/test_bid_rates.py
import random

import matplotlib

matplotlib.use("Agg")

from setback_arena.bidding import Personality
from setback_arena.cli import sample_bid_decisions
from setback_arena.game_log import write_bid_log_csv
from setback_arena.results.bid_rates import (
    BAND_ORDER,
    load_bid_log,
    plot_bid_rates,
    summarize_bid_rates,
)


def _records():
    rows = []
    for band, bids, total in (("STRONG", 9, 10), ("VERY_WEAK", 1, 10), ("MEDIUM", 5, 10)):
        for i in range(total):
            passed = i >= bids
            rows.append(
                {
                    "band": band,
                    "strength": 50,
                    "passed": passed,
                    "amount": None if passed else 3,
                    "personality": "conservative",
                }
            )
    # Human seats carry no band and are ignored.
    rows.append({"band": None, "strength": None, "passed": True, "amount": None, "personality": None})
    return rows


def test_summary_is_ordered_by_band():
    summary = summarize_bid_rates(_records())
    assert list(summary["band"]) == ["VERY_WEAK", "MEDIUM", "STRONG"]
    assert list(summary["count"]) == [10, 10, 10]
    assert list(summary["bid_rate"]) == [0.1, 0.5, 0.9]
    assert (summary["ci95"] > 0).all()
    assert summary["mean_amount"].iloc[2] == 3


def test_summary_by_personality():
    summary = summarize_bid_rates(_records(), by="personality")
    assert set(summary["personality"]) == {"conservative"}
    assert len(summary) == 3


def test_band_order_ascends():
    assert BAND_ORDER == ["VERY_WEAK", "WEAK", "MEDIUM", "STRONG", "VERY_STRONG"]


def test_plot_is_saved(tmp_path):
    path = tmp_path / "rates.png"
    fig = plot_bid_rates(summarize_bid_rates(_records()), path=path)
    assert path.exists()
    assert fig.axes[0].get_ylabel() == "Bid rate"


def test_sampled_decisions_round_trip_through_csv(tmp_path):
    records = sample_bid_decisions(300, random.Random(1), Personality.CONSERVATIVE)
    assert len(records) == 300
    for record in records:
        assert 0 <= record["own_score"] <= 20
        assert record["passed"] == (record["amount"] is None)

    path = tmp_path / "calibration.csv"
    write_bid_log_csv(records, path)
    data = load_bid_log(path)
    assert len(data) == 300
    assert data["passed"].dtype == bool

    summary = summarize_bid_rates(data)
    assert list(summary["band"]) == [b for b in BAND_ORDER if b in set(summary["band"])]

