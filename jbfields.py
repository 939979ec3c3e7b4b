#!/usr/bin/env python3
"""
Unified entry point for all Jumbleberry Fields tools.

Usage:
    python jbfields.py                          # Default: interactive solver
    python jbfields.py --mode web --port 9000   # JSON API
    python jbfields.py --mode simulate -n 5000  # Monte-Carlo validation

Individual entry points (cli.py, web.py, simulate.py) still work independently.
"""
import argparse
import sys


def main():
    # Pre-parse just the --mode flag, pass everything else through
    parser = argparse.ArgumentParser(
        description="Jumbleberry Fields — optimal play solver",
        add_help=False,
    )
    parser.add_argument("--mode", choices=["cli", "web", "simulate"], default="cli",
                        help="Tool: cli (default), web (JSON API), simulate (validation)")
    args, remaining = parser.parse_known_args()

    if args.mode == "cli":
        from cli import main as run_cli
        return run_cli(remaining)

    elif args.mode == "web":
        # Restore remaining args for parse_args() in web.py
        sys.argv = [sys.argv[0]] + remaining
        from web import main as run_web
        run_web()

    elif args.mode == "simulate":
        from simulate import main as run_simulate
        return run_simulate(remaining)

    return 0


if __name__ == "__main__":
    sys.exit(main())
