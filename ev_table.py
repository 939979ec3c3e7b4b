"""
EV Table — Expected future score for every set of remaining categories.

table[cs] is the expected total score still to come when the categories in
cs remain and a fresh round (5 dice, 2 rerolls) is about to start, under
optimal play. It is built bottom-up: a set is only evaluated once every
smaller set is final, because scoring a category moves play to a strictly
smaller set.

The table is persisted as JSON, one entry per non-empty category set:

    [{"category_set": 1, "categories": ["Jumbleberry"], "ev": 5.53}, ...]
"""
import json
import logging
import math
import time
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

from dice_tables import FIRST_ROLL_PROBS, NUM_OUTCOMES, SCORE_TABLE, reroll_layer
from game_engine import (
    ALL_CATEGORIES, CATEGORY_INDEX, NUM_CATEGORIES,
    category_count, has_category, iter_categories, remove_category,
)

logger = logging.getLogger(__name__)

NUM_CATEGORY_SETS = ALL_CATEGORIES + 1  # 512
REROLLS_PER_ROUND = 2


class EVTableFormatError(ValueError):
    """A persisted EV table could not be decoded."""


class EVTableSaveError(OSError):
    """Writing the EV table failed. The computed table is still usable."""

    def __init__(self, path, table):
        super().__init__(f"could not save EV table to {path}")
        self.path = path
        self.table = table


class EVTable:
    """Expected values for all 512 category sets, indexed by bitmask."""

    def __init__(self, values=None):
        if values is None:
            values = [0.0] * NUM_CATEGORY_SETS
        if len(values) != NUM_CATEGORY_SETS:
            raise ValueError(f"EV table needs {NUM_CATEGORY_SETS} entries, got {len(values)}")
        self._values = [float(v) for v in values]
        self._values[0] = 0.0

    def __getitem__(self, categories):
        if not 0 <= categories < NUM_CATEGORY_SETS:
            raise IndexError(f"category set out of range: {categories}")
        return self._values[categories]

    def ev(self, categories):
        """Expected future score with these categories left, before rolling"""
        return self[categories]

    def set_ev(self, categories, value):
        """Store one entry. Only used while the table is being built."""
        if not 0 < categories < NUM_CATEGORY_SETS:
            raise ValueError(f"category set out of range: {categories}")
        self._values[categories] = float(value)

    def category_value(self, categories, category):
        """How much of ev(categories) is owed to having category still open.

        Returns ev(categories) - ev(categories without category), or 0.0 if
        the category is not in the set.
        """
        if not has_category(categories, category):
            return 0.0
        return self[categories] - self[remove_category(categories, category)]

    def values(self):
        """Copy of the raw entries"""
        return list(self._values)


# ── DP ───────────────────────────────────────────────────────────────────────

def scoring_layer(categories, table):
    """Value of each outcome with no rerolls left: the best category to score.

    v0[d] = max over c in categories of score(d, c) + table[categories - c]

    Args:
        categories: Non-empty category set bitmask
        table: Anything indexable by category set (EVTable or list)

    Returns:
        List of NUM_OUTCOMES floats
    """
    options = [(CATEGORY_INDEX[cat], table[remove_category(categories, cat)])
               for cat in iter_categories(categories)]
    layer = []
    for di in range(NUM_OUTCOMES):
        scores = SCORE_TABLE[di]
        layer.append(max(scores[ci] + future for ci, future in options))
    return layer


def subset_ev(categories, table):
    """EV of a fresh round with these categories left.

    Every proper subset of categories must already be final in table.
    """
    layer = scoring_layer(categories, table)
    for _ in range(REROLLS_PER_ROUND):
        layer = reroll_layer(layer)
    return sum(prob * value for prob, value in zip(FIRST_ROLL_PROBS, layer))


def _subset_ev_task(args):
    """Process pool entry point: (categories, table values) → (categories, ev)."""
    categories, values = args
    return categories, subset_ev(categories, values)


def sets_by_size():
    """Group every non-empty category set by its number of categories.

    Returns:
        Dict size → list of bitmasks, ascending
    """
    tiers = {size: [] for size in range(1, NUM_CATEGORIES + 1)}
    for categories in range(1, NUM_CATEGORY_SETS):
        tiers[category_count(categories)].append(categories)
    return tiers


def compute_ev_table(on_progress=None, workers=1):
    """Build the full EV table by dynamic programming.

    Sets are processed in increasing size: all 1-category sets, then the
    2-category sets (which only look at 1-category results), up to all 9.
    Sets of the same size are independent, so with workers > 1 each size
    tier is spread over a process pool; the next tier starts only after the
    whole tier is written.

    Args:
        on_progress: Optional callback(size, total) after each size tier
        workers: Number of worker processes (1 = compute in this process)

    Returns:
        Completed EVTable
    """
    table = EVTable()
    tiers = sets_by_size()

    executor = ProcessPoolExecutor(max_workers=workers) if workers > 1 else None
    try:
        for size in range(1, NUM_CATEGORIES + 1):
            if executor is None:
                results = ((cs, subset_ev(cs, table)) for cs in tiers[size])
            else:
                snapshot = table.values()
                results = executor.map(_subset_ev_task,
                                       [(cs, snapshot) for cs in tiers[size]],
                                       chunksize=8)
            for categories, value in results:
                table.set_ev(categories, value)

            if on_progress is not None:
                on_progress(size, NUM_CATEGORIES)
    finally:
        if executor is not None:
            executor.shutdown()

    return table


# ── Persistence ─────────────────────────────────────────────────────────────

def serialize(table):
    """Encode the table as indented JSON text."""
    entries = []
    for categories in range(1, NUM_CATEGORY_SETS):
        entries.append({
            "category_set": categories,
            "categories": [cat.value for cat in iter_categories(categories)],
            "ev": table.ev(categories),
        })
    return json.dumps(entries, indent=2)


def deserialize(text):
    """Decode JSON text (str or bytes) produced by serialize().

    Raises:
        EVTableFormatError: the text is not a complete, well-formed table
    """
    try:
        entries = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise EVTableFormatError(f"invalid JSON: {exc}") from exc

    if not isinstance(entries, list):
        raise EVTableFormatError("expected a list of entries")

    table = EVTable()
    seen = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise EVTableFormatError(f"entry is not an object: {entry!r}")
        categories = entry.get("category_set")
        value = entry.get("ev")
        if isinstance(categories, bool) or not isinstance(categories, int) \
                or not 0 < categories < NUM_CATEGORY_SETS:
            raise EVTableFormatError(f"bad category_set: {categories!r}")
        if isinstance(value, bool) or not isinstance(value, (int, float)) \
                or not math.isfinite(value):
            raise EVTableFormatError(f"bad ev for set {categories}: {value!r}")
        names = entry.get("categories")
        if names is not None and names != [cat.value for cat in iter_categories(categories)]:
            raise EVTableFormatError(f"category names do not match set {categories}: {names!r}")
        if categories in seen:
            raise EVTableFormatError(f"duplicate category_set: {categories}")
        seen.add(categories)
        table.set_ev(categories, value)

    if len(seen) != NUM_CATEGORY_SETS - 1:
        raise EVTableFormatError(
            f"expected {NUM_CATEGORY_SETS - 1} entries, got {len(seen)}")
    return table


def save_json(table, path):
    """Write the table to a JSON file."""
    Path(path).write_text(serialize(table))


def load_json(path):
    """Read a table from a JSON file.

    Raises:
        OSError: the file could not be read (FileNotFoundError if missing)
        EVTableFormatError: the file is not a valid table
    """
    return deserialize(Path(path).read_bytes())


def load_or_compute(path, workers=1):
    """Load the table from path, computing and saving it if that fails.

    A missing or malformed file is not an error: the table is rebuilt from
    scratch and written back to path.

    Raises:
        EVTableSaveError: the table was computed but could not be saved;
            the exception's table attribute holds it
    """
    try:
        table = load_json(path)
        logger.info("EV table loaded from %s", path)
        return table
    except FileNotFoundError:
        logger.info("EV table not found at %s, computing...", path)
    except (EVTableFormatError, OSError) as exc:
        logger.warning("EV table at %s is unusable (%s), computing...", path, exc)

    start = time.perf_counter()

    def report(size, total):
        logger.info("  Completed size %d/%d  (%.2fs elapsed)",
                    size, total, time.perf_counter() - start)

    table = compute_ev_table(on_progress=report, workers=workers)

    try:
        save_json(table, path)
    except OSError as exc:
        raise EVTableSaveError(path, table) from exc
    logger.info("EV table computed and saved to %s", path)
    return table
