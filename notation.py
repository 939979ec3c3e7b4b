"""Text notation for dice and category sets.

Dice:
    JJSPM          one letter per die (J, S, P, M, X), exactly 5
    2J 1S 1P 1M    count tokens, omitted berries are 0, counts total 5

Categories:
    all            every category
    all-j-s        every category except Jumbleberry and Sugarberry
    j,m,3k,fr      only the listed categories
"""
from game_engine import (
    ALL_CATEGORIES, BERRY_LETTERS, Category, NUM_BERRIES, NUM_DICE,
    add_category, remove_category,
)


class NotationError(ValueError):
    """User-supplied dice or category text could not be parsed."""


_LETTER_TO_BERRY = {letter: i for i, letter in enumerate(BERRY_LETTERS)}

CATEGORY_ALIASES = {
    "jumbleberry": Category.JUMBLEBERRY,
    "j": Category.JUMBLEBERRY,
    "jb": Category.JUMBLEBERRY,
    "sugarberry": Category.SUGARBERRY,
    "s": Category.SUGARBERRY,
    "sb": Category.SUGARBERRY,
    "pickleberry": Category.PICKLEBERRY,
    "p": Category.PICKLEBERRY,
    "pb": Category.PICKLEBERRY,
    "moonberry": Category.MOONBERRY,
    "m": Category.MOONBERRY,
    "mb": Category.MOONBERRY,
    "basketofthree": Category.BASKET_OF_THREE,
    "3k": Category.BASKET_OF_THREE,
    "b3": Category.BASKET_OF_THREE,
    "three": Category.BASKET_OF_THREE,
    "basketoffour": Category.BASKET_OF_FOUR,
    "4k": Category.BASKET_OF_FOUR,
    "b4": Category.BASKET_OF_FOUR,
    "four": Category.BASKET_OF_FOUR,
    "basketoffive": Category.BASKET_OF_FIVE,
    "5k": Category.BASKET_OF_FIVE,
    "b5": Category.BASKET_OF_FIVE,
    "five": Category.BASKET_OF_FIVE,
    "mixedbasket": Category.MIXED_BASKET,
    "mix": Category.MIXED_BASKET,
    "mixed": Category.MIXED_BASKET,
    "freeroll": Category.FREE_ROLL,
    "fr": Category.FREE_ROLL,
    "free": Category.FREE_ROLL,
}


def parse_dice(text):
    """Parse dice notation into a counts tuple.

    Raises:
        NotationError: empty input, unknown letter, bad token, or not 5 dice
    """
    text = text.strip()
    if not text:
        raise NotationError("empty dice input")

    if len(text) == NUM_DICE and text.isalpha():
        return _parse_dice_sequence(text)
    return _parse_dice_counts(text)


def _parse_dice_sequence(text):
    """Parse "JJSPM"."""
    counts = [0] * NUM_BERRIES
    for pos, letter in enumerate(text, start=1):
        berry = _LETTER_TO_BERRY.get(letter.upper())
        if berry is None:
            raise NotationError(
                f"unknown die face {letter!r} at position {pos} (use J, S, P, M, or X)")
        counts[berry] += 1
    return tuple(counts)


def _parse_dice_counts(text):
    """Parse "2J 1S 1P 1M 0X"."""
    counts = [0] * NUM_BERRIES
    for token in text.split():
        digits = len(token) - len(token.lstrip("0123456789"))
        if digits == 0 or digits == len(token):
            raise NotationError(
                f"invalid token {token!r} (expected format like '2J' or '1M')")
        letter = token[digits:]
        if len(letter) != 1:
            raise NotationError(
                f"invalid berry letter in {token!r} (use J, S, P, M, or X)")
        berry = _LETTER_TO_BERRY.get(letter.upper())
        if berry is None:
            raise NotationError(
                f"unknown berry {letter!r} in {token!r} (use J, S, P, M, or X)")
        counts[berry] += int(token[:digits])

    total = sum(counts)
    if total != NUM_DICE:
        raise NotationError(f"dice must sum to {NUM_DICE}, got {total}")
    return tuple(counts)


def _lookup_category(name):
    cat = CATEGORY_ALIASES.get(name)
    if cat is None:
        raise NotationError(f"unknown category {name!r}")
    return cat


def parse_categories(text):
    """Parse category notation into a non-empty category set bitmask.

    Raises:
        NotationError: empty input, unknown name, or an empty explicit list
    """
    text = text.strip().lower()
    if not text:
        raise NotationError("empty categories input")

    if text.startswith("all"):
        categories = ALL_CATEGORIES
        for part in text[3:].split("-"):
            part = part.strip()
            if part:
                categories = remove_category(categories, _lookup_category(part))
        if categories == 0:
            raise NotationError("no categories left after removals")
        return categories

    categories = 0
    for part in text.split(","):
        part = part.strip()
        if part:
            categories = add_category(categories, _lookup_category(part))
    if categories == 0:
        raise NotationError("no valid categories specified")
    return categories


def format_dice(dice):
    """Short form of a counts tuple, e.g. "2M 1P", or "nothing" if empty."""
    parts = [f"{count}{letter}" for count, letter in zip(dice, BERRY_LETTERS) if count]
    if not parts:
        return "nothing"
    return " ".join(parts)
