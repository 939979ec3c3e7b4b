"""
Jumbleberry Fields Solver — Optimal action for a single game state.

Contains:
- Action types (ScoreAction, RerollAction) and the option lists behind them
- solve(): score-or-reroll recommendation from an EV table
- theoretical_max(): best score reachable if every future die were perfect

Pure and deterministic: the same state and table always give the same answer,
and nothing here mutates the table, so one table can serve any number of
concurrent callers.
"""
from dataclasses import dataclass
from typing import List, Tuple, Union

from dice_tables import (
    KEEP_TO_INDEX, SCORE_TABLE, TRANSITIONS,
    dice_index, reroll_layer, unique_keeps,
)
from ev_table import scoring_layer
from game_engine import (
    ALL_CATEGORIES, CATEGORY_INDEX, Category, NUM_DICE,
    calculate_score, iter_categories, is_valid_dice,
    remove_category,
)

TOP_REROLL_OPTIONS = 10
MAX_REROLLS = 2


# ── Action Types ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreAction:
    """Lock in the current dice for a category."""
    category: Category
    ev: float
    reason: str = ""


@dataclass(frozen=True)
class RerollAction:
    """Hold the keep counts and reroll the rest."""
    keep: Tuple[int, ...]
    ev: float
    reason: str = ""


@dataclass(frozen=True)
class CategoryOption:
    """One way to score the current dice."""
    category: Category
    immediate_score: int
    future_ev: float
    total_value: float


@dataclass(frozen=True)
class RerollOption:
    """One keep decision and its expected value."""
    keep: Tuple[int, ...]
    num_rerolled: int
    ev: float


@dataclass(frozen=True)
class Recommendation:
    """Full solver output for a game state."""
    best_action: Union[ScoreAction, RerollAction]
    theoretical_max: float
    category_options: List[CategoryOption]  # filled when scoring is recommended
    top_reroll_options: List[RerollOption]  # filled when rerolling is recommended


# ── Theoretical maximum ─────────────────────────────────────────────────────

# Best possible score per category with perfect dice
MAX_CATEGORY_SCORE = {
    Category.JUMBLEBERRY: 10,      # 5 × 2
    Category.SUGARBERRY: 10,       # 5 × 2
    Category.PICKLEBERRY: 20,      # 5 × 4
    Category.MOONBERRY: 35,        # 5 × 7
    Category.BASKET_OF_THREE: 35,  # 5 Moonberries
    Category.BASKET_OF_FOUR: 35,
    Category.BASKET_OF_FIVE: 35,
    Category.MIXED_BASKET: 22,     # J + S + P + 2M
    Category.FREE_ROLL: 35,
}


def sum_max_scores(categories):
    """Sum of MAX_CATEGORY_SCORE over the set"""
    return float(sum(MAX_CATEGORY_SCORE[cat] for cat in iter_categories(categories)))


def theoretical_max(dice, rerolls_left, categories):
    """Score reachable from this state if every future roll came up perfect.

    With a reroll left any outcome is reachable, so every category can make
    its maximum. With none left the current dice must go somewhere, and the
    other categories still make their maximum in later rounds.
    """
    if rerolls_left > 0:
        return sum_max_scores(categories)
    best = 0.0
    for cat in iter_categories(categories):
        total = calculate_score(cat, dice) + sum_max_scores(remove_category(categories, cat))
        if total > best:
            best = total
    return best


# ── Solver ──────────────────────────────────────────────────────────────────

def _validate(dice, rerolls_left, categories):
    if not is_valid_dice(dice):
        raise ValueError(f"dice must be {NUM_DICE} counts summing to {NUM_DICE}, got {dice!r}")
    if not 0 <= rerolls_left <= MAX_REROLLS:
        raise ValueError(f"rerolls_left must be 0-{MAX_REROLLS}, got {rerolls_left}")
    if isinstance(categories, bool) or not isinstance(categories, int) \
            or not 0 <= categories <= ALL_CATEGORIES:
        raise ValueError(f"category set must be a bitmask in [0, {ALL_CATEGORIES}], "
                         f"got {categories!r}")
    if categories == 0:
        raise ValueError("no categories left to score")


def solve(dice, rerolls_left, categories, table) -> Recommendation:
    """Recommend scoring or rerolling for the given state.

    Args:
        dice: Counts tuple of the current roll
        rerolls_left: 0 (must score), 1 or 2
        categories: Non-empty bitmask of unused categories
        table: EVTable for future rounds

    Returns:
        Recommendation with ScoreAction or RerollAction as best_action

    Raises:
        ValueError: degenerate query (bad dice, rerolls out of range, no categories)
    """
    _validate(dice, rerolls_left, categories)
    if rerolls_left == 0:
        return _solve_scoring(dice, categories, table)
    return _solve_reroll(dice, rerolls_left, categories, table)


def _category_options(dice, categories, table):
    """Every scoring option, best first. Ties keep enum order."""
    di = dice_index(dice)
    options = []
    for cat in iter_categories(categories):
        immediate = SCORE_TABLE[di][CATEGORY_INDEX[cat]]
        future = table.ev(remove_category(categories, cat))
        options.append(CategoryOption(
            category=cat,
            immediate_score=immediate,
            future_ev=future,
            total_value=immediate + future,
        ))
    options.sort(key=lambda opt: opt.total_value, reverse=True)
    return options


def _solve_scoring(dice, categories, table):
    """Pick the category with the best immediate score plus future EV."""
    options = _category_options(dice, categories, table)
    best = options[0]
    return Recommendation(
        best_action=ScoreAction(
            category=best.category,
            ev=best.total_value,
            reason=f"Scoring {best.category.value} for {best.immediate_score} "
                   f"(future EV: {best.future_ev:.2f})"),
        theoretical_max=theoretical_max(dice, 0, categories),
        category_options=options,
        top_reroll_options=[],
    )


def _solve_reroll(dice, rerolls_left, categories, table):
    """Compare every keep that rerolls at least one die against scoring now."""
    # Layer with rerolls_left - 1 rerolls, which every keep lands in
    layer = scoring_layer(categories, table)
    for _ in range(rerolls_left - 1):
        layer = reroll_layer(layer)

    options = []
    best_keep = None
    best_ev = float("-inf")
    for keep in unique_keeps(dice):
        num_rerolled = NUM_DICE - sum(keep)
        if num_rerolled == 0:
            continue  # keeping everything is the scoring option

        ev = sum(prob * layer[ri] for ri, prob in TRANSITIONS[KEEP_TO_INDEX[keep]])
        options.append(RerollOption(keep=keep, num_rerolled=num_rerolled, ev=ev))
        if ev > best_ev:
            best_ev = ev
            best_keep = keep

    score_rec = _solve_scoring(dice, categories, table)
    if score_rec.best_action.ev >= best_ev:
        return Recommendation(
            best_action=score_rec.best_action,
            theoretical_max=theoretical_max(dice, rerolls_left, categories),
            category_options=score_rec.category_options,
            top_reroll_options=[],
        )

    options.sort(key=lambda opt: opt.ev, reverse=True)
    return Recommendation(
        best_action=RerollAction(
            keep=best_keep,
            ev=best_ev,
            reason=f"Rerolling {NUM_DICE - sum(best_keep)} "
                   f"(EV: {best_ev:.2f} vs score: {score_rec.best_action.ev:.2f})"),
        theoretical_max=theoretical_max(dice, rerolls_left, categories),
        category_options=[],
        top_reroll_options=options[:TOP_REROLL_OPTIONS],
    )
