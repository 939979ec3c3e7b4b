"""
Solver Test Suite

Covers:
    1. Scoring with no rerolls left — option lists, ordering, ties
    2. Reroll decisions — when to reroll, option lists, keep validity
    3. Consistency with the EV table
    4. Theoretical maximum
    5. Invalid queries
"""
import pytest

import solver
from dice_tables import ALL_DICE, ALL_KEEPS, FIRST_ROLL_PROBS, dice_index
from ev_table import EVTable
from game_engine import (
    ALL_CATEGORIES, Category, calculate_score, is_sub_multiset, make_category_set,
    remove_category,
)
from solver import (
    MAX_CATEGORY_SCORE, RerollAction, ScoreAction, TOP_REROLL_OPTIONS,
    solve, sum_max_scores, theoretical_max,
)

FIVE_MOONS = (0, 0, 0, 5, 0)
FIVE_PESTS = (0, 0, 0, 0, 5)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. SCORING
# ═══════════════════════════════════════════════════════════════════════════════

class TestScoring:

    def test_five_moonberries_scores_35(self, ev_table):
        rec = solve(FIVE_MOONS, 0, ALL_CATEGORIES, ev_table)
        assert isinstance(rec.best_action, ScoreAction)
        best = rec.category_options[0]
        assert best.category == rec.best_action.category
        assert best.immediate_score == 35
        assert rec.top_reroll_options == []

    def test_lists_every_open_category(self, ev_table):
        rec = solve((2, 1, 1, 1, 0), 0, ALL_CATEGORIES, ev_table)
        assert len(rec.category_options) == 9
        assert {opt.category for opt in rec.category_options} == set(Category)

    def test_options_sorted_best_first(self, ev_table):
        rec = solve((2, 1, 1, 1, 0), 0, ALL_CATEGORIES, ev_table)
        totals = [opt.total_value for opt in rec.category_options]
        assert totals == sorted(totals, reverse=True)
        assert rec.best_action.ev == totals[0]

    def test_option_values_add_up(self, ev_table):
        dice = (0, 2, 2, 1, 0)
        rec = solve(dice, 0, ALL_CATEGORIES, ev_table)
        for opt in rec.category_options:
            assert opt.immediate_score == calculate_score(opt.category, dice)
            assert opt.future_ev == ev_table[remove_category(ALL_CATEGORIES, opt.category)]
            assert opt.total_value == opt.immediate_score + opt.future_ev

    def test_single_category_must_be_used(self, ev_table):
        cs = make_category_set([Category.BASKET_OF_FIVE])
        rec = solve(FIVE_PESTS, 0, cs, ev_table)
        assert rec.best_action.category == Category.BASKET_OF_FIVE
        assert rec.best_action.ev == 0.0

    def test_ties_keep_category_order(self):
        """With an all-zero table and only pests, every option is worth 0."""
        rec = solve(FIVE_PESTS, 0, make_category_set(
            [Category.MOONBERRY, Category.JUMBLEBERRY, Category.FREE_ROLL]), EVTable())
        assert [opt.category for opt in rec.category_options] == [
            Category.JUMBLEBERRY, Category.MOONBERRY, Category.FREE_ROLL]
        assert rec.best_action.category == Category.JUMBLEBERRY

    def test_reason_mentions_category(self, ev_table):
        rec = solve(FIVE_MOONS, 0, make_category_set([Category.MOONBERRY]), ev_table)
        assert "Moonberry" in rec.best_action.reason
        assert "35" in rec.best_action.reason

    def test_solver_does_not_touch_table(self, ev_table):
        before = ev_table.values()
        solve((1, 1, 1, 2, 0), 2, ALL_CATEGORIES, ev_table)
        solve((1, 1, 1, 2, 0), 0, ALL_CATEGORIES, ev_table)
        assert ev_table.values() == before


# ═══════════════════════════════════════════════════════════════════════════════
# 2. REROLLING
# ═══════════════════════════════════════════════════════════════════════════════

class TestRerolling:

    def test_five_pests_rerolls(self, ev_table):
        rec = solve(FIVE_PESTS, 2, ALL_CATEGORIES, ev_table)
        assert isinstance(rec.best_action, RerollAction)
        assert rec.category_options == []
        # keep 0..4 pests; keeping all five is the scoring option
        assert len(rec.top_reroll_options) == 5
        assert rec.best_action.keep == rec.top_reroll_options[0].keep

    def test_last_reroll_with_pests(self, ev_table):
        rec = solve(FIVE_PESTS, 1, ALL_CATEGORIES, ev_table)
        assert isinstance(rec.best_action, RerollAction)
        assert sum(rec.best_action.keep) < 5

    def test_perfect_dice_for_last_category_scores(self, ev_table):
        cs = make_category_set([Category.BASKET_OF_FIVE])
        rec = solve(FIVE_MOONS, 2, cs, ev_table)
        assert isinstance(rec.best_action, ScoreAction)
        assert rec.best_action.category == Category.BASKET_OF_FIVE
        assert rec.best_action.ev == 35.0
        assert rec.top_reroll_options == []
        assert len(rec.category_options) == 1

    def test_top_options_capped_and_sorted(self, ev_table):
        rec = solve((1, 1, 0, 0, 3), 2, ALL_CATEGORIES, ev_table)
        assert isinstance(rec.best_action, RerollAction)
        evs = [opt.ev for opt in rec.top_reroll_options]
        assert len(evs) == TOP_REROLL_OPTIONS
        assert evs == sorted(evs, reverse=True)
        assert rec.best_action.ev == evs[0]

    def test_tie_between_scoring_and_rerolling_scores(self, ev_table, monkeypatch):
        """Every keep lands back on the same dice, so rerolling is worth exactly the best score."""
        dice = (2, 1, 1, 1, 0)
        same_dice = [(dice_index(dice), 1.0)]
        monkeypatch.setattr(solver, "TRANSITIONS", [same_dice] * len(ALL_KEEPS))
        rec = solve(dice, 1, ALL_CATEGORIES, ev_table)
        assert isinstance(rec.best_action, ScoreAction)
        assert rec.best_action.ev == rec.category_options[0].total_value
        assert rec.top_reroll_options == []

    def test_reroll_options_are_partial_keeps(self, ev_table):
        dice = (0, 0, 0, 1, 4)
        rec = solve(dice, 2, ALL_CATEGORIES, ev_table)
        assert isinstance(rec.best_action, RerollAction)
        for opt in rec.top_reroll_options:
            assert is_sub_multiset(opt.keep, dice)
            assert opt.num_rerolled == 5 - sum(opt.keep)
            assert opt.num_rerolled >= 1

    def test_more_rerolls_never_hurt(self, ev_table):
        for dice in [(2, 1, 1, 1, 0), FIVE_PESTS, (0, 0, 2, 3, 0), (1, 1, 1, 1, 1)]:
            one = solve(dice, 1, ALL_CATEGORIES, ev_table).best_action.ev
            two = solve(dice, 2, ALL_CATEGORIES, ev_table).best_action.ev
            zero = solve(dice, 0, ALL_CATEGORIES, ev_table).best_action.ev
            assert two >= one - 1e-9
            assert one >= zero - 1e-9


# ═══════════════════════════════════════════════════════════════════════════════
# 3. CONSISTENCY WITH THE TABLE
# ═══════════════════════════════════════════════════════════════════════════════

class TestConsistency:

    @pytest.mark.parametrize("categories", [
        ALL_CATEGORIES,
        make_category_set([Category.MOONBERRY, Category.MIXED_BASKET]),
        make_category_set([Category.FREE_ROLL]),
    ])
    def test_first_roll_expectation_matches_table(self, ev_table, categories):
        """Averaging the best action over every first roll gives the table entry."""
        expected = sum(prob * solve(dice, 2, categories, ev_table).best_action.ev
                       for dice, prob in zip(ALL_DICE, FIRST_ROLL_PROBS))
        assert expected == pytest.approx(ev_table[categories], abs=1e-6)


# ═══════════════════════════════════════════════════════════════════════════════
# 4. THEORETICAL MAXIMUM
# ═══════════════════════════════════════════════════════════════════════════════

class TestTheoreticalMax:

    def test_sum_of_maxima(self):
        assert sum_max_scores(ALL_CATEGORIES) == 237.0
        assert sum(MAX_CATEGORY_SCORE.values()) == 237

    def test_with_rerolls_everything_is_reachable(self, ev_table):
        assert theoretical_max(FIVE_PESTS, 2, ALL_CATEGORIES) == 237.0
        rec = solve((2, 1, 1, 1, 0), 2, ALL_CATEGORIES, ev_table)
        assert rec.theoretical_max == 237.0

    def test_perfect_final_dice(self, ev_table):
        rec = solve(FIVE_MOONS, 0, ALL_CATEGORIES, ev_table)
        assert rec.theoretical_max == 237.0

    def test_final_dice_cost_points(self):
        # pests score 0 wherever they go; Jumbleberry has the smallest max
        assert theoretical_max(FIVE_PESTS, 0, ALL_CATEGORIES) == 227.0

    def test_single_category(self):
        cs = make_category_set([Category.PICKLEBERRY])
        assert theoretical_max((0, 0, 3, 0, 2), 0, cs) == 12.0
        assert theoretical_max((0, 0, 3, 0, 2), 1, cs) == 20.0

    def test_never_below_best_action(self, ev_table):
        for dice in [(2, 1, 1, 1, 0), (0, 0, 0, 2, 3)]:
            for rerolls in range(3):
                rec = solve(dice, rerolls, ALL_CATEGORIES, ev_table)
                assert rec.theoretical_max >= rec.best_action.ev


# ═══════════════════════════════════════════════════════════════════════════════
# 5. INVALID QUERIES
# ═══════════════════════════════════════════════════════════════════════════════

class TestInvalidQueries:

    @pytest.mark.parametrize("dice", [(1, 1, 1, 1, 0), (6, 0, 0, 0, 0), (5, 0, 0, 0), [5, 0, 0, 0, 0]])
    def test_bad_dice(self, ev_table, dice):
        with pytest.raises(ValueError):
            solve(dice, 0, ALL_CATEGORIES, ev_table)

    @pytest.mark.parametrize("rerolls", [-1, 3])
    def test_bad_rerolls(self, ev_table, rerolls):
        with pytest.raises(ValueError):
            solve(FIVE_MOONS, rerolls, ALL_CATEGORIES, ev_table)

    def test_no_categories(self, ev_table):
        with pytest.raises(ValueError):
            solve(FIVE_MOONS, 0, 0, ev_table)

    @pytest.mark.parametrize("categories", [-1, 512, 513, True, 3.0])
    def test_bad_category_set(self, ev_table, categories):
        with pytest.raises(ValueError, match="category set"):
            solve(FIVE_MOONS, 0, categories, ev_table)
