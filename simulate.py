#!/usr/bin/env python3
"""
Jumbleberry Fields Simulator — Play many games and compare against the EV table.

Validates the theoretical EV by Monte-Carlo: the mean of optimal play over N
games should land within a few standard errors of table.ev(ALL_CATEGORIES).

Usage: python simulate.py [-n GAMES] [--seed N] [--ev PATH]
       python simulate.py --strategy greedy -n 10000
"""
import argparse
import logging
import math
import random
import statistics
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Union

from ev_table import EVTableFormatError, load_json
from game_engine import (
    ALL_CATEGORIES, BERRIES, BERRY_POINTS, Berry, GameState, NUM_BERRIES,
    calculate_score, iter_categories, reroll, select_category, start_round,
)
from game_log import GameLog
from settings import load_settings
from solver import RerollAction, ScoreAction, solve

logger = logging.getLogger(__name__)

HISTOGRAM_BUCKET = 10
HISTOGRAM_WIDTH = 50

_MOONBERRY = BERRIES.index(Berry.MOONBERRY)


# ── Strategy Interface ──────────────────────────────────────────────────────

class Strategy(ABC):
    """Decides what to do with a rolled state."""

    @abstractmethod
    def choose_action(self, state: GameState) -> Union[RerollAction, ScoreAction]:
        """Given a rolled state, decide: reroll some dice or score.

        Must return a ScoreAction when state.rerolls_left == 0.
        """
        ...


class OptimalStrategy(Strategy):
    """Plays the solver's recommendation every time."""

    def __init__(self, table):
        self.table = table

    def choose_action(self, state: GameState) -> Union[RerollAction, ScoreAction]:
        rec = solve(state.dice, state.rerolls_left, state.categories, self.table)
        return rec.best_action


class GreedyStrategy(Strategy):
    """Baseline: chase Moonberries and the most common berry, score the biggest number.

    Scores right away when the best immediate score reaches score_threshold.
    """

    def __init__(self, score_threshold: int = 25):
        self.score_threshold = score_threshold

    def choose_action(self, state: GameState) -> Union[RerollAction, ScoreAction]:
        best_cat = max(iter_categories(state.categories),
                       key=lambda cat: calculate_score(cat, state.dice))
        best_score = calculate_score(best_cat, state.dice)
        if state.rerolls_left == 0 or best_score >= self.score_threshold:
            return ScoreAction(category=best_cat, ev=float(best_score),
                               reason=f"Greedy score {best_cat.value} for {best_score}")

        # Hold the most common scoring berry (points break ties), plus any Moonberries
        scoring = [b for b in range(NUM_BERRIES) if BERRY_POINTS[b] > 0]
        target = max(scoring, key=lambda b: (state.dice[b], BERRY_POINTS[b]))
        keep = tuple(state.dice[b] if b in (target, _MOONBERRY) else 0 for b in range(NUM_BERRIES))
        return RerollAction(keep=keep, ev=0.0, reason="Greedy hold")


# ── Game Loop ───────────────────────────────────────────────────────────────

def play_round(state: GameState, strategy: Strategy, rng, log: GameLog = None) -> GameState:
    """Play one round: first roll, strategy rerolls, then score a category.

    Raises:
        ValueError: the strategy asked for an illegal reroll or category
    """
    state = start_round(state, rng)
    rerolls_used = 0

    while True:
        action = strategy.choose_action(state)

        if isinstance(action, ScoreAction):
            round_number = state.round
            new_state = select_category(state, action.category)
            if new_state is state:
                raise ValueError(f"strategy picked unavailable category {action.category}")
            if log is not None:
                log.log_score(round_number, action.category, state.dice,
                              new_state.score - state.score, rerolls_used)
            return new_state

        new_state = reroll(state, action.keep, rng)
        if new_state is state:
            raise ValueError(f"strategy asked for an illegal reroll keeping {action.keep}")
        state = new_state
        rerolls_used += 1


def play_game(strategy: Strategy, rng=random, log: GameLog = None) -> GameState:
    """Play a complete 9-round game.

    Returns:
        Final game state with game_over == True
    """
    state = GameState.create_initial()
    while not state.game_over:
        state = play_round(state, strategy, rng, log)
    return state


# ── Simulation ──────────────────────────────────────────────────────────────

@dataclass
class SimulationResult:
    """Scores of a batch of games and the log of the best one."""
    scores: List[int]
    elapsed: float
    best_log: GameLog = field(default_factory=GameLog)

    @property
    def mean(self):
        return statistics.fmean(self.scores)

    @property
    def stdev(self):
        return statistics.pstdev(self.scores)

    @property
    def stderr(self):
        return self.stdev / math.sqrt(len(self.scores))


def run_simulation(strategy: Strategy, num_games: int, seed=None, on_progress=None):
    """Play num_games games and collect their scores.

    Args:
        strategy: Strategy to play
        num_games: Number of games (> 0)
        seed: Seed for a private random.Random; None seeds from the OS
        on_progress: Optional callback(done, total), called every tenth of the run
    """
    rng = random.Random(seed)
    scores = []
    best_score = -1
    best_log = GameLog()
    step = max(1, num_games // 10)

    t0 = time.perf_counter()
    for i in range(num_games):
        log = GameLog()
        state = play_game(strategy, rng, log)
        scores.append(state.score)
        if state.score > best_score:
            best_score = state.score
            best_log = log
        if on_progress is not None and (i + 1) % step == 0:
            on_progress(i + 1, num_games)
    elapsed = time.perf_counter() - t0

    return SimulationResult(scores=scores, elapsed=elapsed, best_log=best_log)


def histogram_lines(scores, bucket=HISTOGRAM_BUCKET, width=HISTOGRAM_WIDTH):
    """Text histogram of scores in fixed-size buckets."""
    counts = {}
    for s in scores:
        b = (s // bucket) * bucket
        counts[b] = counts.get(b, 0) + 1
    top = max(counts.values())
    lines = []
    for b in range(min(counts), max(counts) + bucket, bucket):
        count = counts.get(b, 0)
        bar = "█" * (count * width // top)
        pct = count / len(scores) * 100
        lines.append(f"  {b:3d}-{b + bucket - 1:3d}: {bar} {count} ({pct:.1f}%)")
    return lines


def print_results(result: SimulationResult, theoretical_ev: float):
    """Print statistics, the best game and the score distribution."""
    print()
    print("=== Results ===")
    print(f"Games simulated:  {len(result.scores)}")
    print(f"Time elapsed:     {result.elapsed:.2f}s")
    print()
    print(f"Theoretical EV:   {theoretical_ev:.4f}")
    print(f"Simulated mean:   {result.mean:.4f}")
    print(f"Difference:       {result.mean - theoretical_ev:+.4f}")
    print(f"Std error:        {result.stderr:.4f}")
    print()
    print(f"Standard dev:     {result.stdev:.4f}")
    print(f"Min score:        {min(result.scores)}")
    print(f"Max score:        {max(result.scores)}")
    print()
    print("Best game breakdown:")
    for line in result.best_log.breakdown_lines():
        print(line)
    print()
    print("Score distribution:")
    for line in histogram_lines(result.scores):
        print(line)


def main(argv=None):
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Jumbleberry Fields Simulator")
    parser.add_argument("-n", "--games", type=int, default=settings["simulation_games"],
                        help="Number of games to simulate (default: %(default)s)")
    parser.add_argument("--ev", default=settings["ev_table_path"],
                        help="Path to EV table JSON (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed (default: unseeded)")
    parser.add_argument("--strategy", choices=["optimal", "greedy"], default="optimal",
                        help="Strategy to simulate (default: optimal)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.games <= 0:
        parser.error("--games must be positive")

    try:
        table = load_json(args.ev)
    except (OSError, EVTableFormatError) as exc:
        print(f"Error loading EV table: {exc}", file=sys.stderr)
        print("Run the CLI or web server first to generate the EV table", file=sys.stderr)
        return 1

    strategy = OptimalStrategy(table) if args.strategy == "optimal" else GreedyStrategy()
    theoretical_ev = table.ev(ALL_CATEGORIES)
    print(f"Theoretical EV (all categories): {theoretical_ev:.4f}")
    print(f"Simulating {args.games} games...")

    start = time.perf_counter()
    result = run_simulation(
        strategy, args.games, seed=args.seed,
        on_progress=lambda done, total: logger.info(
            "  %d/%d games  (%.2fs elapsed)", done, total, time.perf_counter() - start))
    print_results(result, theoretical_ev)
    return 0


if __name__ == "__main__":
    sys.exit(main())
