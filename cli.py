#!/usr/bin/env python3
"""
Jumbleberry Fields CLI — Interactive solver prompt.

Asks for the current dice, rerolls left and remaining categories, and prints
the optimal play. Type 'quit' or 'exit' at any prompt to leave.
"""
import argparse
import logging
import sys

from ev_table import EVTableSaveError, load_or_compute
from game_engine import ALL_CATEGORIES
from notation import NotationError, parse_categories, parse_dice
from report import format_recommendation
from settings import load_settings
from solver import MAX_REROLLS, solve

logger = logging.getLogger(__name__)

HELP_TEXT = """\
=== Jumbleberry Fields Solver ===
Enter your game state to get optimal play advice.
Type 'quit' or 'exit' at any prompt to quit.

--- Dice ---
  Letters: J=Jumbleberry  S=Sugarberry  P=Pickleberry  M=Moonberry  X=Pest
  Sequence format:  JJSPM       (one letter per die, 5 total)
  Count format:     2J 1S 1P 1M (space-separated, omitted types = 0)

--- Rolls Left ---
  0 = no rerolls (must score)    1 = one reroll left    2 = two rerolls left

--- Categories ---
  Shorthand: j  s  p  m  3k  4k  5k  mix  fr
  Examples:  'all'          all 9 categories
             'all-j-s'      all except Jumbleberry and Sugarberry
             'j,m,3k,fr'    only those 4 categories
"""

_QUIT_WORDS = ("quit", "exit")


class _Quit(Exception):
    """Raised by a prompt when the user is done."""


def _prompt(label, stdin, stdout):
    stdout.write(label)
    stdout.flush()
    line = stdin.readline()
    if not line:
        raise _Quit
    line = line.strip()
    if line.lower() in _QUIT_WORDS:
        raise _Quit
    return line


def _parse_rerolls(text):
    try:
        rerolls_left = int(text)
    except ValueError:
        rerolls_left = -1
    if not 0 <= rerolls_left <= MAX_REROLLS:
        raise NotationError(f"rolls left must be 0, 1, or {MAX_REROLLS}")
    return rerolls_left


def run_repl(table, stdin=sys.stdin, stdout=sys.stdout):
    """Prompt for states until quit/exit or end of input."""
    stdout.write(HELP_TEXT + "\n")

    while True:
        try:
            dice_text = _prompt("Dice: ", stdin, stdout)
            try:
                dice = parse_dice(dice_text)
            except NotationError as exc:
                stdout.write(f"  Error: {exc}\n\n")
                continue

            rolls_text = _prompt(f"Rolls left (0-{MAX_REROLLS}): ", stdin, stdout)
            try:
                rerolls_left = _parse_rerolls(rolls_text)
            except NotationError as exc:
                stdout.write(f"  Error: {exc}\n\n")
                continue

            cat_text = _prompt("Categories remaining: ", stdin, stdout)
            try:
                categories = parse_categories(cat_text)
            except NotationError as exc:
                stdout.write(f"  Error: {exc}\n\n")
                continue
        except _Quit:
            break

        rec = solve(dice, rerolls_left, categories, table)
        stdout.write(format_recommendation(rec, dice, rerolls_left, categories) + "\n\n")


def load_table(path, workers):
    """Load or build the EV table; a failed save still returns the table."""
    try:
        return load_or_compute(path, workers=workers)
    except EVTableSaveError as exc:
        logger.error("%s: %s", exc, exc.__cause__)
        return exc.table


def main(argv=None):
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Jumbleberry Fields interactive solver")
    parser.add_argument("--ev", default=settings["ev_table_path"],
                        help="Path to EV table JSON (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=settings["workers"],
                        help="Processes used if the table must be computed (default: %(default)s)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    table = load_table(args.ev, args.workers)
    print(f"EV with all categories: {table.ev(ALL_CATEGORIES):.2f}\n")
    run_repl(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())
