#!/usr/bin/env python3
"""
Jumbleberry Fields Web — Flask JSON API for the solver.

POST /solve  {"dice": "JJSPM", "rolls_left": 2, "categories": "all"}
GET  /ev?categories=all-j-s

The EV table is loaded once at startup and shared read-only by every request.
"""
import logging

logger = logging.getLogger(__name__)

from flask import Flask, jsonify, request

from cli import load_table
from game_engine import ALL_CATEGORIES, iter_categories
from notation import NotationError, parse_categories, parse_dice
from report import recommendation_to_dict
from settings import load_settings
from solver import MAX_REROLLS, solve

app = Flask(__name__)


def _error(status, message):
    return jsonify({"error": message}), status


def _table():
    return app.config["EV_TABLE"]


@app.route("/solve", methods=["POST"])
def solve_route():
    """Recommend the optimal action for a posted game state."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error(400, "invalid JSON: expected an object")

    dice_text = payload.get("dice")
    if not isinstance(dice_text, str):
        return _error(400, "invalid dice: expected a string")
    try:
        dice = parse_dice(dice_text)
    except NotationError as exc:
        return _error(400, f"invalid dice: {exc}")

    rerolls_left = payload.get("rolls_left", 0)
    if isinstance(rerolls_left, bool) or not isinstance(rerolls_left, int) \
            or not 0 <= rerolls_left <= MAX_REROLLS:
        return _error(400, f"rolls_left must be 0, 1, or {MAX_REROLLS}")

    cat_text = payload.get("categories")
    if not isinstance(cat_text, str):
        return _error(400, "invalid categories: expected a string")
    try:
        categories = parse_categories(cat_text)
    except NotationError as exc:
        return _error(400, f"invalid categories: {exc}")

    rec = solve(dice, rerolls_left, categories, _table())
    return jsonify(recommendation_to_dict(rec))


@app.route("/ev", methods=["GET"])
def ev_route():
    """Expected future score for a set of remaining categories."""
    cat_text = request.args.get("categories", "all")
    try:
        categories = parse_categories(cat_text)
    except NotationError as exc:
        return _error(400, f"invalid categories: {exc}")

    table = _table()
    return jsonify({
        "category_set": categories,
        "categories": [cat.value for cat in iter_categories(categories)],
        "ev": table.ev(categories),
        "category_values": {
            cat.value: table.category_value(categories, cat)
            for cat in iter_categories(categories)
        },
    })


@app.errorhandler(500)
def internal_error(exc):
    original = getattr(exc, "original_exception", None) or exc
    logger.error("Unhandled error: %r", original, exc_info=original)
    return _error(500, "internal error")


def main():
    """Entry point for the web server."""
    import argparse
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Jumbleberry Fields Solver API")
    parser.add_argument("--host", default=settings["host"], help="Host to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=settings["port"], help="Port (default: %(default)s)")
    parser.add_argument("--ev", default=settings["ev_table_path"],
                        help="Path to EV table JSON (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=settings["workers"],
                        help="Processes used if the table must be computed (default: %(default)s)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    app.config["EV_TABLE"] = load_table(args.ev, args.workers)
    logger.info("EV with all categories: %.2f", app.config["EV_TABLE"].ev(ALL_CATEGORIES))
    logger.info("Listening on http://%s:%d", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
