# setback_arena/cli.py
from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from .agents import HeuristicAgent, RandomAgent
from .bidding import BiddingEngine, Personality, TableContext
from .cards import full_deck
from .engine import SEAT_PERSONALITIES, GameEngine
from .game_log import build_hand_rows, write_bid_log_csv, write_hand_rows_csv
from .paths import ensure_results_dir, resolve_results_path
from .results.bid_rates import summarize_bid_rates
from .state import CARDS_PER_HAND, DEFAULT_TARGET_SCORE, GameConfig, PlayerConfig
from .verbose_logger import FailureLogger, VerboseGameLogger

CALIBRATION_MAX_SCORE = 20


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate Setback games between AI seats and calibrate the bidding engine."
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base random seed for shoes and agents (default: 0).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: INFO.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Play full AI games and log hand scores and bids.")
    sim.add_argument(
        "--games",
        type=int,
        default=1,
        help="Number of full games to play (default: 1).",
    )
    sim.add_argument(
        "--target-score",
        type=int,
        default=DEFAULT_TARGET_SCORE,
        help="Score a partnership needs to win (default: %(default)s).",
    )
    sim.add_argument(
        "--max-hands",
        type=int,
        default=None,
        help="Stop each game after this many hands even if nobody has won.",
    )
    sim.add_argument(
        "--random-seats",
        type=int,
        nargs="*",
        default=[],
        help="Seat indexes (0-3) to fill with the random baseline agent.",
    )
    sim.add_argument(
        "--csv",
        type=str,
        default="setback_hand_scores.csv",
        help="Path to the per-hand score CSV (default: setback_hand_scores.csv).",
    )
    sim.add_argument(
        "--bid-log",
        type=str,
        default="setback_bid_log.csv",
        help="Path to the per-decision bid CSV (default: setback_bid_log.csv).",
    )
    sim.add_argument(
        "--verbose-log",
        type=str,
        default=None,
        help="Optional path for a turn-by-turn log of every notification.",
    )
    sim.add_argument(
        "--failure-log",
        type=str,
        default=None,
        help="Optional path to capture only rejected bids and plays.",
    )
    sim.add_argument(
        "--parallel-games",
        type=int,
        default=1,
        help="Max number of games to run concurrently (default: 1).",
    )

    cal = sub.add_parser(
        "calibrate",
        help="Sample random hands under random table pressure and report bid rates per strength band.",
    )
    cal.add_argument(
        "--trials",
        type=int,
        default=2000,
        help="Number of sampled bidding decisions (default: 2000).",
    )
    cal.add_argument(
        "--personality",
        type=str,
        choices=[p.value for p in Personality],
        default=Personality.CONSERVATIVE.value,
        help="Behavior profile to calibrate (default: conservative).",
    )
    cal.add_argument(
        "--bid-log",
        type=str,
        default="setback_calibration.csv",
        help="Path to the sampled-decision CSV (default: setback_calibration.csv).",
    )

    return parser.parse_args(argv)


# --------------------------------------------------------------------------- #
# simulate                                                                    #
# --------------------------------------------------------------------------- #


def _build_agents(game_seed: int, random_seats: List[int]) -> List[Any]:
    agents: List[Any] = []
    for seat in range(len(SEAT_PERSONALITIES)):
        rng = random.Random(game_seed * 1000 + seat)
        if seat in random_seats:
            agents.append(RandomAgent(rng=rng))
        else:
            agents.append(HeuristicAgent(rng=rng, personality=SEAT_PERSONALITIES[seat]))
    return agents


def _play_single_game(
    game_index: int,
    *,
    args: argparse.Namespace,
    verbose_logger: Optional[VerboseGameLogger],
    failure_logger: Optional[FailureLogger],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], str]:
    """Run one game synchronously (meant for thread execution)."""
    game_id = f"game-{game_index}"
    game_seed = args.seed + game_index
    config = GameConfig(
        target_score=args.target_score,
        players=[PlayerConfig(name=f"AI {seat}") for seat in range(len(SEAT_PERSONALITIES))],
    )
    engine = GameEngine(
        config,
        agents=_build_agents(game_seed, args.random_seats),
        rng_seed=game_seed,
        game_label=game_id,
    )
    if verbose_logger:
        verbose_logger.attach(engine.table, game_id)
    if failure_logger:
        failure_logger.attach(engine.table, game_id)

    game_state = engine.play_game(max_hands=args.max_hands)
    if engine.corrections:
        logging.warning("%s needed %d auto-corrected actions", game_id, engine.corrections)

    rows = build_hand_rows(game_state, game_id=game_id)
    return rows, engine.bid_records, game_id


async def _play_single_game_async(
    game_index: int,
    *,
    args: argparse.Namespace,
    verbose_logger: Optional[VerboseGameLogger],
    failure_logger: Optional[FailureLogger],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], str]:
    return await asyncio.to_thread(
        _play_single_game,
        game_index,
        args=args,
        verbose_logger=verbose_logger,
        failure_logger=failure_logger,
    )


async def run_simulation(args: argparse.Namespace) -> Tuple[int, int]:
    """Play `args.games` games; return (games played, hand rows written)."""
    csv_path = resolve_results_path(args.csv)
    bid_path = resolve_results_path(args.bid_log)
    verbose_path = resolve_results_path(args.verbose_log) if args.verbose_log else None
    failure_path = resolve_results_path(args.failure_log) if args.failure_log else None

    for seat in args.random_seats:
        if not 0 <= seat < len(SEAT_PERSONALITIES):
            raise SystemExit(f"--random-seats must be between 0 and 3; got {seat}")

    logging.info("Games to play: %d", args.games)
    logging.info("Output CSV: %s", csv_path)
    logging.info("Bid log: %s", bid_path)
    if verbose_path:
        logging.info("Verbose log: %s", verbose_path)
    if failure_path:
        logging.info("Failure log: %s", failure_path)

    verbose_logger = VerboseGameLogger(verbose_path) if verbose_path else None
    failure_logger = FailureLogger(failure_path) if failure_path else None

    parallel_games = max(1, min(args.parallel_games, args.games))
    all_rows: List[Dict[str, Any]] = []
    all_bids: List[Dict[str, Any]] = []
    games_played = 0

    for batch_start in range(0, args.games, parallel_games):
        batch_indices = list(range(batch_start, min(batch_start + parallel_games, args.games)))
        tasks = [
            asyncio.create_task(
                _play_single_game_async(
                    game_index,
                    args=args,
                    verbose_logger=verbose_logger,
                    failure_logger=failure_logger,
                )
            )
            for game_index in batch_indices
        ]
        for rows, bids, game_id in await asyncio.gather(*tasks):
            all_rows.extend(rows)
            all_bids.extend(bids)
            games_played += 1
            logging.info("Finished %s", game_id)

    write_hand_rows_csv(all_rows, csv_path)
    write_bid_log_csv(all_bids, bid_path)
    logging.info(
        "Finished %d games; wrote %d hand rows and %d bid decisions",
        games_played,
        len(all_rows),
        len(all_bids),
    )

    if verbose_logger:
        verbose_logger.flush()
    if failure_logger:
        failure_logger.flush()
    return games_played, len(all_rows)


# --------------------------------------------------------------------------- #
# calibrate                                                                   #
# --------------------------------------------------------------------------- #


def sample_bid_decisions(
    trials: int,
    rng: random.Random,
    personality: Personality = Personality.CONSERVATIVE,
    target_score: int = DEFAULT_TARGET_SCORE,
) -> List[Dict[str, Any]]:
    """
    Decide opening bids for random hands under random score pressure.

    Each trial deals a fresh hand and draws both partnership scores uniformly
    from 0..20. The seat acts first, is not the dealer and has no standing bid.
    """
    engine = BiddingEngine(rng)
    deck = full_deck()
    records: List[Dict[str, Any]] = []
    for trial in range(trials):
        hand = rng.sample(deck, CARDS_PER_HAND)
        context = TableContext(
            player_id="player_1",
            partner_id="player_3",
            own_score=rng.randint(0, CALIBRATION_MAX_SCORE),
            opponent_score=rng.randint(0, CALIBRATION_MAX_SCORE),
            target_score=target_score,
        )
        decision = engine.explain(hand, context, personality)
        records.append(
            {
                "game_id": None,
                "hand_index": trial,
                "player_id": context.player_id,
                "personality": personality.value,
                "strength": decision.strength,
                "band": decision.band.name,
                "threshold": round(decision.threshold, 4),
                "min_bid": decision.min_bid,
                "amount": decision.amount,
                "passed": decision.passed,
                "own_score": context.own_score,
                "opponent_score": context.opponent_score,
                "is_dealer": context.is_dealer,
            }
        )
    return records


def run_calibration(args: argparse.Namespace) -> List[Dict[str, Any]]:
    bid_path = resolve_results_path(args.bid_log)
    records = sample_bid_decisions(
        args.trials,
        random.Random(args.seed),
        personality=Personality(args.personality),
    )
    write_bid_log_csv(records, bid_path)
    summary = summarize_bid_rates(records)
    logging.info("Bid rates by strength band (%s):\n%s", args.personality, summary.to_string())
    logging.info("Wrote %d sampled decisions to %s", len(records), bid_path)
    return records


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    ensure_results_dir()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "simulate":
        asyncio.run(run_simulation(args))
    else:
        run_calibration(args)


if __name__ == "__main__":
    main()

'''
python3 -m setback_arena.cli --seed 1 simulate \
  --games 50 \
  --csv setback_50_games.csv \
  --bid-log setback_50_games_bids.csv \
  --verbose-log setback_50_games_verbose.log \
  --failure-log setback_50_games_failures.log
'''

'''
python3 -m setback_arena.cli --seed 7 calibrate --trials 5000 --personality balanced
'''
