import sys
from typing import Any, Dict, Iterable, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..bidding import HandStrength

# Bands in ascending strength, matching HandStrength.
BAND_ORDER = [band.name for band in sorted(HandStrength)]


def load_bid_log(path) -> pd.DataFrame:
    """Read a bid CSV written by write_bid_log_csv, keeping only AI decisions."""
    df = pd.read_csv(path)
    df = df[df["band"].notna()].copy()
    df["passed"] = df["passed"].astype(str).str.lower().isin(["true", "1"])
    return df


def summarize_bid_rates(
    data: Union[pd.DataFrame, Iterable[Dict[str, Any]]],
    by: Optional[str] = None,
) -> pd.DataFrame:
    """
    Per strength band: decisions, bid rate, mean amount bid and a 95% CI.

    `by` optionally adds a second grouping column such as "personality".
    Rows come back in ascending band order.
    """
    df = data.copy() if isinstance(data, pd.DataFrame) else pd.DataFrame(list(data))
    df = df[df["band"].notna()].copy()
    df["bid"] = (~df["passed"].astype(bool)).astype(float)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce")

    keys = [by, "band"] if by else ["band"]
    stats = (
        df.groupby(keys)
        .agg(
            count=("bid", "size"),
            bid_rate=("bid", "mean"),
            mean_amount=("amount", "mean"),
            mean_strength=("strength", "mean"),
        )
        .reset_index()
    )

    # 95% confidence interval of a proportion: 1.96 * sqrt(p(1-p)/n)
    stats["ci95"] = 1.96 * np.sqrt(
        stats["bid_rate"] * (1 - stats["bid_rate"]) / stats["count"]
    )

    stats["band"] = pd.Categorical(stats["band"], categories=BAND_ORDER, ordered=True)
    stats = stats.sort_values(keys).reset_index(drop=True)
    stats["band"] = stats["band"].astype(str)
    return stats


def plot_bid_rates(summary: pd.DataFrame, path=None, by: Optional[str] = None):
    """Errorbar chart of bid rate per band; saved to `path` when given."""
    fig, ax = plt.subplots(figsize=(8, 5))
    groups = summary.groupby(by) if by else [("all", summary)]
    for label, sub in groups:
        positions = [BAND_ORDER.index(b) for b in sub["band"]]
        ax.errorbar(
            positions,
            sub["bid_rate"],
            yerr=sub["ci95"],
            marker="o",
            capsize=3,
            label=str(label),
        )

    ax.set_xticks(range(len(BAND_ORDER)))
    ax.set_xticklabels([b.replace("_", " ").lower() for b in BAND_ORDER])
    ax.set_xlabel("Hand strength band")
    ax.set_ylabel("Bid rate")
    ax.set_ylim(-0.05, 1.05)
    ax.grid(True, axis="y", linestyle=":", alpha=0.5)
    if by:
        ax.legend()
    ax.set_title("Bid rate by hand strength (95% CI)")
    fig.tight_layout()

    if path is not None:
        fig.savefig(path)
    return fig


if __name__ == "__main__":
    # python -m setback_arena.results.bid_rates setback_arena/results/setback_bid_log.csv
    csv_path = sys.argv[1] if len(sys.argv) > 1 else "setback_arena/results/setback_bid_log.csv"
    df = load_bid_log(csv_path)
    summary = summarize_bid_rates(df, by="personality")
    print(summary.to_string(index=False))
    plot_bid_rates(summary, by="personality")
    plt.show()
