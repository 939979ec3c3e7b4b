"""
Jumbleberry Fields Game Engine - Pure game rules without any frontend

Defines the berries (die faces), the 9 scoring categories, category sets as
bitmasks, the scoring function and an immutable game state with pure
transition functions. Dice are tuples of per-berry counts, so two rolls with
the same berries are the same value no matter the order they landed in.
"""
from dataclasses import dataclass, replace
from typing import Iterator, Tuple
from enum import Enum
import random


class Berry(Enum):
    """Faces on a Jumbleberry Fields die"""
    JUMBLEBERRY = "Jumbleberry"
    SUGARBERRY = "Sugarberry"
    PICKLEBERRY = "Pickleberry"
    MOONBERRY = "Moonberry"
    PEST = "Pest"


BERRIES = list(Berry)
NUM_BERRIES = len(BERRIES)
NUM_DICE = 5

BERRY_POINTS = (2, 2, 4, 7, 0)

# Each die has 10 faces: 3 Jumbleberry, 3 Sugarberry, 2 Pickleberry,
# 1 Moonberry, 1 Pest.
FACE_PROBS = (0.3, 0.3, 0.2, 0.1, 0.1)

BERRY_LETTERS = ("J", "S", "P", "M", "X")


class Category(Enum):
    """Jumbleberry Fields score categories"""
    JUMBLEBERRY = "Jumbleberry"
    SUGARBERRY = "Sugarberry"
    PICKLEBERRY = "Pickleberry"
    MOONBERRY = "Moonberry"
    BASKET_OF_THREE = "Basket of Three"
    BASKET_OF_FOUR = "Basket of Four"
    BASKET_OF_FIVE = "Basket of Five"
    MIXED_BASKET = "Mixed Basket"
    FREE_ROLL = "Free Roll"


CATEGORIES = list(Category)
NUM_CATEGORIES = len(CATEGORIES)
CATEGORY_INDEX = {cat: i for i, cat in enumerate(CATEGORIES)}

# Bitmask with every category present (511)
ALL_CATEGORIES = (1 << NUM_CATEGORIES) - 1

_SINGLE_BERRY_CATEGORIES = {
    Category.JUMBLEBERRY: 0,
    Category.SUGARBERRY: 1,
    Category.PICKLEBERRY: 2,
    Category.MOONBERRY: 3,
}

_BASKET_SIZES = {
    Category.BASKET_OF_THREE: 3,
    Category.BASKET_OF_FOUR: 4,
    Category.BASKET_OF_FIVE: 5,
}


# ── Category sets ───────────────────────────────────────────────────────────
# A category set is a plain int: bit i is set when CATEGORIES[i] remains.

def category_bit(category):
    """Return the single-bit mask for a category"""
    return 1 << CATEGORY_INDEX[category]


def has_category(categories, category):
    """Check whether a category is in the set"""
    return categories & category_bit(category) != 0


def add_category(categories, category):
    """Return a new set with the category added"""
    return categories | category_bit(category)


def remove_category(categories, category):
    """Return a new set with the category removed"""
    return categories & ~category_bit(category) & ALL_CATEGORIES


def category_count(categories):
    """Number of categories in the set"""
    return bin(categories & ALL_CATEGORIES).count("1")


def iter_categories(categories) -> Iterator[Category]:
    """Yield the categories in the set, in enum order"""
    for i, cat in enumerate(CATEGORIES):
        if categories & (1 << i):
            yield cat


def make_category_set(categories):
    """Build a category set bitmask from an iterable of Category values"""
    mask = 0
    for cat in categories:
        mask = add_category(mask, cat)
    return mask


# ── Dice ────────────────────────────────────────────────────────────────────

def dice_total(dice):
    """Number of dice represented by a counts tuple"""
    return sum(dice)


def dice_points(dice):
    """Total point value of the dice"""
    return sum(count * points for count, points in zip(dice, BERRY_POINTS))


def add_dice(a, b):
    """Component-wise sum of two counts tuples"""
    return tuple(x + y for x, y in zip(a, b))


def is_sub_multiset(keep, dice):
    """Check that every berry count in keep is available in dice"""
    return all(k <= d for k, d in zip(keep, dice))


def is_valid_dice(dice):
    """Check that dice is a tuple of 5 non-negative counts summing to 5"""
    return (isinstance(dice, tuple)
            and len(dice) == NUM_BERRIES
            and all(isinstance(c, int) and c >= 0 for c in dice)
            and sum(dice) == NUM_DICE)


def dice_from_berries(berries):
    """Convert an iterable of Berry faces into a counts tuple"""
    counts = [0] * NUM_BERRIES
    for berry in berries:
        counts[BERRIES.index(berry)] += 1
    return tuple(counts)


def has_n_of_kind(dice, n):
    """
    Check if any berry (the Pest included) shows on at least n dice

    Args:
        dice: Counts tuple
        n: Number of matching dice required

    Returns:
        True if at least n dice show the same berry
    """
    return max(dice) >= n


def has_mixed_basket(dice):
    """Check that every berry worth points shows at least once"""
    return all(dice[i] >= 1 for i in _SINGLE_BERRY_CATEGORIES.values())


def calculate_score(category, dice):
    """
    Calculate the score for a given category and dice

    Args:
        category: Category enum value
        dice: Counts tuple (J, S, P, M, X)

    Returns:
        Integer score for the category (0 if the dice don't qualify)

    Raises:
        ValueError: if category is not a Category
    """
    # Single berry categories - count times berry value
    if category in _SINGLE_BERRY_CATEGORIES:
        berry = _SINGLE_BERRY_CATEGORIES[category]
        return dice[berry] * BERRY_POINTS[berry]

    # Baskets of N - sum of all dice if at least N match
    elif category in _BASKET_SIZES:
        return dice_points(dice) if has_n_of_kind(dice, _BASKET_SIZES[category]) else 0

    # Mixed basket - sum of all dice if every scoring berry is present
    elif category == Category.MIXED_BASKET:
        return dice_points(dice) if has_mixed_basket(dice) else 0

    # Free roll - sum of all dice
    elif category == Category.FREE_ROLL:
        return dice_points(dice)

    raise ValueError(f"invalid category: {category!r}")


# ── Rolling ─────────────────────────────────────────────────────────────────

def roll_berries(n, rng=random):
    """Roll n dice with the weighted face distribution, returning counts"""
    return dice_from_berries(rng.choices(BERRIES, weights=FACE_PROBS, k=n))


@dataclass(frozen=True)
class GameState:
    """Immutable game state - represents complete game state at a point in time"""
    dice: Tuple[int, ...]  # counts per berry
    rerolls_left: int  # 0-2
    categories: int  # bitmask of unused categories
    score: int = 0
    rolled: bool = False  # False before the round's first roll

    @staticmethod
    def create_initial():
        """Create a fresh game state"""
        return GameState(
            dice=(0,) * NUM_BERRIES,
            rerolls_left=2,
            categories=ALL_CATEGORIES,
            score=0,
            rolled=False,
        )

    @property
    def round(self):
        """Current round number (1-9)"""
        return NUM_CATEGORIES - category_count(self.categories) + 1

    @property
    def game_over(self):
        return self.categories == 0


# Game Action Functions

def start_round(state: GameState, rng=random) -> GameState:
    """
    Roll all five dice to open a round.

    Returns state unchanged if the round is already rolled or the game is over.
    """
    if state.rolled or state.game_over:
        return state
    return replace(state,
                   dice=roll_berries(NUM_DICE, rng),
                   rerolls_left=2,
                   rolled=True)


def can_reroll(state: GameState) -> bool:
    """Player can reroll after the first roll while rerolls remain"""
    return state.rolled and not state.game_over and state.rerolls_left > 0


def reroll(state: GameState, keep, rng=random) -> GameState:
    """
    Keep some dice and reroll the rest.

    Args:
        state: Current game state
        keep: Counts tuple of dice to hold; must be a sub-multiset of state.dice

    Returns:
        New GameState with rerolled dice and one fewer reroll, or the state
        unchanged if rerolling is not allowed or keep is not held dice.
    """
    if not can_reroll(state) or not is_sub_multiset(keep, state.dice):
        return state
    rolled = roll_berries(NUM_DICE - dice_total(keep), rng)
    return replace(state,
                   dice=add_dice(keep, rolled),
                   rerolls_left=state.rerolls_left - 1)


def can_select_category(state: GameState, category: Category) -> bool:
    """Category is available once the dice are rolled and it is still unused"""
    return state.rolled and not state.game_over and has_category(state.categories, category)


def select_category(state: GameState, category: Category) -> GameState:
    """
    Lock in the current dice for a category and end the round.

    Returns state unchanged if the category cannot be selected.
    """
    if not can_select_category(state, category):
        return state
    return replace(state,
                   score=state.score + calculate_score(category, state.dice),
                   categories=remove_category(state.categories, category),
                   rerolls_left=2,
                   rolled=False)
