import io
import pytest
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nurikabe_model import NurikabeModel, UNKNOWN, WHITE, BLACK
from nurikabe_rules import NurikabeSolver
from nurikabe_report import (
    format_time, render_text, serialize_grid, write_html, progress_line, summarize_rules,
)


@pytest.mark.parametrize("seconds, expected", [
    (5e-4, "500 microseconds"),
    (0.25, "250 milliseconds"),
    (2.5, "2.5 seconds"),
])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_render_text():
    assert render_text([[1, BLACK], [WHITE, UNKNOWN]]) == "1 #\n. ?"
    assert render_text([[10, WHITE], [BLACK, 2]]) == "10  .\n #  2"


def test_render_text_round_trip():
    text = "3 . #\n# ? #\n? ? ?"
    model = NurikabeModel.from_state_text(text)
    assert render_text(model.cells) == text


def test_serialize_grid():
    model = NurikabeModel.from_state_text("2 .\n# ?\n")
    assert serialize_grid(model) == [["CLUE(2)", "WHITE"], ["BLACK", "UNKNOWN"]]


def solved_small_puzzle():
    solver = NurikabeSolver(NurikabeModel.from_text("1 .\n. .\n"))
    solver.run()
    return solver


def test_write_html():
    solver = solved_small_puzzle()
    steps = solver.steps
    out = io.StringIO()
    write_html(out, steps, steps[0].timestamp, steps[-1].timestamp, title="small <puzzle>")
    page = out.getvalue()

    assert page.startswith("<!DOCTYPE html>")
    assert "<title>small &lt;puzzle&gt;</title>" in page
    assert page.count("<table>") == len(steps)
    assert "I&#x27;m okay to go!" in page
    assert "Complete islands found." in page
    assert '<td class="new black">#</td>' in page
    assert '<td class="old black">#</td>' in page
    assert '<td class="old unknown"> </td>' in page
    assert '<td class="old number">1</td>' in page
    assert "Total: " in page
    assert page.rstrip().endswith("</html>")


def test_write_html_failed_guesses():
    model = NurikabeModel.from_text("2 . .\n. . .\n. . 2\n")
    solver = NurikabeSolver(model)
    solver.run()
    steps = solver.steps
    out = io.StringIO()
    write_html(out, steps, steps[0].timestamp, steps[-1].timestamp)
    failed = sum(s.failed_guesses for s in steps)
    assert ("guess failed" in out.getvalue() or "guesses failed" in out.getvalue()) == (failed > 0)


def test_progress_line():
    assert progress_line("easy", 0.5, 3, 4) == "easy: 500 milliseconds, 3/4 (75%) solved"


def test_summarize_rules():
    solver = solved_small_puzzle()
    assert summarize_rules(solver.steps) == [("Complete islands", 1), ("Single liberties", 1)]
