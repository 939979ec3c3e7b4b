"""Game log for Jumbleberry Fields — records every round's scoring decision.

Used by the simulator to print the breakdown of its best game.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Category
from notation import format_dice


@dataclass
class LogEntry:
    """One scored round."""
    round: int                  # 1-9
    category: Category
    dice: tuple[int, ...]
    score: int
    rerolls_used: int = 0


class GameLog:
    """Accumulates LogEntry records during a game."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def log_score(self, round: int, category: Category, dice: tuple[int, ...],
                  score: int, rerolls_used: int = 0) -> None:
        """Record a scoring decision."""
        self.entries.append(LogEntry(
            round=round,
            category=category,
            dice=tuple(dice),
            score=score,
            rerolls_used=rerolls_used,
        ))

    def total(self) -> int:
        return sum(e.score for e in self.entries)

    def breakdown_lines(self) -> list[str]:
        """One line per round plus a total line."""
        lines = [f"  Round {e.round}:  {e.category.value:<18s}  scored {e.score:3d}  "
                 f"with {format_dice(e.dice)}  ({e.rerolls_used} rerolls)"
                 for e in self.entries]
        lines.append(f"  {'TOTAL':<26s}  = {self.total()}")
        return lines
