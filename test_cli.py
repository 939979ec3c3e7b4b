"""Tests for the interactive prompt and table loading in cli.py."""
import io

import cli
from ev_table import EVTableSaveError
from cli import load_table, run_repl


def _run(ev_table, text):
    stdout = io.StringIO()
    run_repl(ev_table, stdin=io.StringIO(text), stdout=stdout)
    return stdout.getvalue()


class TestRepl:

    def test_prints_help_and_exits_at_eof(self, ev_table):
        out = _run(ev_table, "")
        assert "=== Jumbleberry Fields Solver ===" in out
        assert out.rstrip().endswith("Dice:")

    def test_one_query(self, ev_table):
        out = _run(ev_table, "MMMMM\n0\nall\n")
        assert "=== Solver Recommendation ===" in out
        assert "Best action: SCORE in" in out
        assert "Theoretical max: 237" in out

    def test_reroll_query(self, ev_table):
        out = _run(ev_table, "XXXXX\n2\nall\n")
        assert "Best action: REROLL" in out

    def test_several_queries(self, ev_table):
        out = _run(ev_table, "MMMMM\n0\nm\nJJSPM\n1\nall-m\nquit\n")
        assert out.count("=== Solver Recommendation ===") == 2

    def test_bad_dice_reprompts(self, ev_table):
        out = _run(ev_table, "QQQQQ\nJJSPM\n0\nall\n")
        assert "  Error: unknown die face 'Q' at position 1" in out
        assert out.count("=== Solver Recommendation ===") == 1

    def test_bad_rolls(self, ev_table):
        out = _run(ev_table, "JJSPM\n7\nJJSPM\nabc\n")
        assert out.count("  Error: rolls left must be 0, 1, or 2") == 2
        assert "=== Solver Recommendation ===" not in out

    def test_bad_categories(self, ev_table):
        out = _run(ev_table, "JJSPM\n0\nwat\n")
        assert "  Error: unknown category 'wat'" in out

    def test_quit_words(self, ev_table):
        for word in ("quit", "exit", "QUIT", "  exit  "):
            out = _run(ev_table, f"JJSPM\n{word}\nJJSPM\n0\nall\n")
            assert "=== Solver Recommendation ===" not in out


class TestLoadTable:

    def test_returns_loaded_table(self, ev_table, monkeypatch):
        calls = []

        def fake(path, workers=1):
            calls.append((path, workers))
            return ev_table

        monkeypatch.setattr(cli, "load_or_compute", fake)
        assert load_table("ev.json", 4) is ev_table
        assert calls == [("ev.json", 4)]

    def test_save_failure_still_returns_table(self, ev_table, monkeypatch):
        def fake(path, workers=1):
            try:
                raise PermissionError("read-only")
            except PermissionError as exc:
                raise EVTableSaveError(path, ev_table) from exc

        monkeypatch.setattr(cli, "load_or_compute", fake)
        assert load_table("/ro/ev.json", 1) is ev_table
