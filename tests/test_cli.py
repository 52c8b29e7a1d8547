# tests/test_cli.py
import asyncio

import matplotlib

matplotlib.use("Agg")

from setback_arena import cli


def test_parse_args_defaults():
    args = cli.parse_args(["simulate"])
    assert args.command == "simulate"
    assert args.games == 1
    assert args.target_score == 21
    assert args.random_seats == []

    args = cli.parse_args(["calibrate"])
    assert args.trials == 2000
    assert args.personality == "conservative"


def test_run_calibration_writes_log(tmp_path):
    path = tmp_path / "cal.csv"
    args = cli.parse_args(
        ["--seed", "3", "calibrate", "--trials", "200", "--personality", "aggressive", "--bid-log", str(path)]
    )
    records = cli.run_calibration(args)
    assert len(records) == 200
    assert {r["personality"] for r in records} == {"aggressive"}
    assert path.exists()


def test_run_simulation_writes_outputs(tmp_path):
    args = cli.parse_args(
        [
            "--seed",
            "2",
            "simulate",
            "--games",
            "2",
            "--target-score",
            "11",
            "--max-hands",
            "200",
            "--random-seats",
            "1",
            "--parallel-games",
            "2",
            "--csv",
            str(tmp_path / "hands.csv"),
            "--bid-log",
            str(tmp_path / "bids.csv"),
            "--verbose-log",
            str(tmp_path / "verbose.log"),
            "--failure-log",
            str(tmp_path / "failures.log"),
        ]
    )
    games, rows = asyncio.run(cli.run_simulation(args))
    assert games == 2
    assert rows > 0
    assert (tmp_path / "hands.csv").exists()
    assert (tmp_path / "bids.csv").exists()
    text = (tmp_path / "verbose.log").read_text(encoding="utf-8")
    assert "=== Game: game-0 ===" in text
    assert "=== Game: game-1 ===" in text
    # AI seats never make illegal moves, so nothing is written.
    assert not (tmp_path / "failures.log").exists()


def test_build_agents_mixes_random_seats():
    agents = cli._build_agents(game_seed=1, random_seats=[0, 2])
    names = [type(a).__name__ for a in agents]
    assert names == ["RandomAgent", "HeuristicAgent", "RandomAgent", "HeuristicAgent"]
