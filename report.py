"""Human-readable and JSON-ready renderings of solver recommendations."""
from game_engine import category_count
from notation import format_dice
from solver import RerollAction, ScoreAction


def format_recommendation(rec, dice, rerolls_left, categories):
    """Render a Recommendation as a multi-line text block."""
    lines = [
        "",
        "=== Solver Recommendation ===",
        f"Dice: {format_dice(dice)}  |  Rolls left: {rerolls_left}  |  "
        f"Categories: {category_count(categories)} remaining",
        "",
    ]

    if isinstance(rec.best_action, ScoreAction):
        lines.extend(_score_lines(rec))
    else:
        lines.extend(_reroll_lines(rec))

    lines.append(f"Theoretical max: {rec.theoretical_max:.0f}")
    lines.append("=============================")
    return "\n".join(lines)


def _score_lines(rec):
    best = rec.category_options[0]
    lines = [
        f"Best action: SCORE in {best.category.value}",
        f"  Score: {best.immediate_score}  +  Future EV: {best.future_ev:.2f}  =  "
        f"Total: {best.total_value:.2f}",
        "",
        "All category options:",
    ]
    for i, opt in enumerate(rec.category_options, start=1):
        lines.append(f"  #{i}  {opt.category.value:<18s}  score: {opt.immediate_score:3d}   "
                     f"future EV: {opt.future_ev:7.2f}   total: {opt.total_value:7.2f}")
    lines.append("")
    return lines


def _reroll_lines(rec):
    best = rec.top_reroll_options[0]
    lines = [
        "Best action: REROLL",
        f"  Keep {format_dice(best.keep)}  (reroll {best.num_rerolled})",
        f"  Expected value: {best.ev:.2f}",
        "",
        "Top reroll options:",
    ]
    for i, opt in enumerate(rec.top_reroll_options, start=1):
        lines.append(f"  #{i}  Keep {format_dice(opt.keep):<24s}  reroll {opt.num_rerolled}  "
                     f"EV: {opt.ev:7.2f}")
    lines.append("")
    return lines


def recommendation_to_dict(rec):
    """Convert a Recommendation to plain JSON-serializable data.

    Option lists are always present, empty when they don't apply.
    """
    action = rec.best_action
    if isinstance(action, RerollAction):
        best = {"type": "reroll", "keep": format_dice(action.keep), "category": "", "ev": action.ev}
    else:
        best = {"type": "score", "keep": "", "category": action.category.value, "ev": action.ev}

    return {
        "best_action": best,
        "theoretical_max": rec.theoretical_max,
        "category_options": [
            {
                "category": opt.category.value,
                "immediate_score": opt.immediate_score,
                "future_ev": opt.future_ev,
                "total_value": opt.total_value,
            }
            for opt in rec.category_options
        ],
        "top_reroll_options": [
            {
                "keep": format_dice(opt.keep),
                "num_rerolled": opt.num_rerolled,
                "ev": opt.ev,
            }
            for opt in rec.top_reroll_options
        ],
    }
