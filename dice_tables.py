"""
Dice Tables — Precomputed combinatorics for exact Jumbleberry Fields probabilities.

All constants are computed at import time. No randomness involved. Dice are
counts tuples (J, S, P, M, X), see game_engine.

Constants:
    ALL_DICE         — 126 distinct 5-dice outcomes
    DICE_TO_INDEX    — Reverse lookup: counts tuple → index (0-125)
    FIRST_ROLL_PROBS — Multinomial probability of each outcome when rolling 5 dice
    REROLLS          — REROLLS[n]: every RerollOutcome when rolling n dice (0-5)
    ALL_KEEPS        — Every keep of 0-5 dice (252 of them)
    KEEP_TO_INDEX    — Reverse lookup: keep counts tuple → index
    TRANSITIONS      — TRANSITIONS[keep_idx]: list of (dice_idx, probability)
    DICE_KEEPS       — DICE_KEEPS[dice_idx]: indices of every keep of that outcome
    SCORE_TABLE      — 126×9 table: score for each outcome in each category

Functions:
    dice_prob(dice, n)        — Multinomial probability of dice when rolling n
    enumerate_dice(n)         — All outcomes of n dice
    enumerate_rerolls(n)      — Outcomes of n dice paired with probabilities
    unique_keeps(dice)        — All sub-multisets of an outcome
    keep_values(layer)        — Expected layer value of every keep
    reroll_layer(prev_layer)  — Best value per outcome with one more reroll
"""
import itertools
from dataclasses import dataclass
from typing import Tuple

from game_engine import (
    CATEGORIES, FACE_PROBS, NUM_BERRIES, NUM_DICE,
    add_dice, calculate_score,
)

# 0! .. 5!
FACTORIALS = (1.0, 1.0, 2.0, 6.0, 24.0, 120.0)


# ── ALL_DICE: 126 distinct 5-dice outcomes ───────────────────────────────────

def enumerate_dice(n):
    """Return every way to spread n dice over the berries, as counts tuples.

    Stars and bars: C(n + 4, 4) outcomes, generated in a fixed order.
    """
    outcomes = []
    for faces in itertools.combinations_with_replacement(range(NUM_BERRIES), n):
        outcomes.append(tuple(faces.count(b) for b in range(NUM_BERRIES)))
    return outcomes


ALL_DICE = enumerate_dice(NUM_DICE)

DICE_TO_INDEX = {dice: i for i, dice in enumerate(ALL_DICE)}

NUM_OUTCOMES = len(ALL_DICE)


def dice_index(dice):
    """Canonical index of a 5-dice outcome in ALL_DICE"""
    return DICE_TO_INDEX[dice]


# ── Probabilities ────────────────────────────────────────────────────────────

def dice_prob(dice, n):
    """Probability of rolling this outcome with n weighted dice.

    P = n! / (c_J! × c_S! × ... × c_X!) × p_J^c_J × ... × p_X^c_X
    """
    prob = FACTORIALS[n]
    for count, face_prob in zip(dice, FACE_PROBS):
        prob /= FACTORIALS[count]
        if count:
            prob *= face_prob ** count
    return prob


FIRST_ROLL_PROBS = [dice_prob(dice, NUM_DICE) for dice in ALL_DICE]


@dataclass(frozen=True)
class RerollOutcome:
    """One result of rolling n dice, with its probability"""
    dice: Tuple[int, ...]
    prob: float


def enumerate_rerolls(n):
    """Return every outcome of rolling n dice (0-5) with its probability.

    Rolling no dice has the single empty outcome with probability 1.
    """
    return [RerollOutcome(dice=dice, prob=dice_prob(dice, n)) for dice in enumerate_dice(n)]


REROLLS = [enumerate_rerolls(n) for n in range(NUM_DICE + 1)]


# ── Keeps: sub-multisets of an outcome ───────────────────────────────────────

def unique_keeps(dice):
    """Return all distinct keeps (sub-multisets) of an outcome.

    Each berry independently keeps 0..count dice, so an outcome has
    prod(count + 1) keeps, () through the full outcome itself.

    Args:
        dice: Counts tuple

    Returns:
        List of counts tuples, the empty keep first and the full keep last
    """
    return list(itertools.product(*(range(count + 1) for count in dice)))


ALL_KEEPS = [keep for n in range(NUM_DICE + 1) for keep in enumerate_dice(n)]

KEEP_TO_INDEX = {keep: i for i, keep in enumerate(ALL_KEEPS)}


def _build_transitions():
    """For every keep, the distribution over resulting 5-dice outcome indices."""
    transitions = []
    for keep in ALL_KEEPS:
        rerolls = REROLLS[NUM_DICE - sum(keep)]
        transitions.append([(DICE_TO_INDEX[add_dice(keep, ro.dice)], ro.prob)
                            for ro in rerolls])
    return transitions


TRANSITIONS = _build_transitions()

DICE_KEEPS = [[KEEP_TO_INDEX[keep] for keep in unique_keeps(dice)] for dice in ALL_DICE]


# ── SCORE_TABLE: 126×9 score lookup ──────────────────────────────────────────

SCORE_TABLE = [[calculate_score(cat, dice) for cat in CATEGORIES] for dice in ALL_DICE]


# ── Reroll layers ────────────────────────────────────────────────────────────

def keep_values(layer):
    """Expected value of every keep in ALL_KEEPS when the rest are rerolled.

    Args:
        layer: Value of each outcome after the reroll (indexed like ALL_DICE)

    Returns:
        List indexed like ALL_KEEPS
    """
    return [sum(prob * layer[di] for di, prob in outcomes) for outcomes in TRANSITIONS]


def reroll_layer(prev_layer):
    """Best value of each outcome when one more reroll is available.

    For every outcome the baseline is keeping all dice (prev_layer itself);
    every other keep is scored by its expectation over the rerolled dice.
    A keep's value does not depend on which outcome it came from, so it is
    computed once per keep and shared.

    Args:
        prev_layer: Value of each outcome with one fewer reroll

    Returns:
        New list of NUM_OUTCOMES values, pointwise >= prev_layer
    """
    values = keep_values(prev_layer)
    layer = []
    for di in range(NUM_OUTCOMES):
        best = prev_layer[di]  # keep everything
        for ki in DICE_KEEPS[di]:
            if values[ki] > best:
                best = values[ki]
        layer.append(best)
    return layer
