import pytest
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nurikabe_model import NurikabeModel, SitRep
from nurikabe_rules import NurikabeSolver
from nurikabe_confinement import ConfinementAnalyzer

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def load_puzzle(name):
    with open(os.path.join(PROJECT_ROOT, "puzzles", "classic", name), "r") as f:
        return NurikabeModel.from_text(f.read())


@pytest.mark.parametrize("state, cell, expected", [
    # An island walled in below its number.
    ("2 #\n# ?\n", (0, 0), True),
    ("2 ? .\n", (0, 0), False),
    # A white region escapes as soon as it reaches an island.
    ("2 ? .\n", (2, 0), False),
    ("1 # .\n", (2, 0), True),
    # The sea has to reach the total black count.
    ("2 #\n# ?\n", (1, 0), False),
    ("3 ? #\n? ? ?\n", (2, 0), False),
    ("# 1\n1 ?\n", (0, 0), True),
    # Complete islands are never confined.
    ("1 #\n# ?\n", (0, 0), False),
])
def test_confined(state, cell, expected):
    model = NurikabeModel.from_state_text(state)
    analyzer = ConfinementAnalyzer(model)
    assert analyzer.confined(model.region_id(*cell)) is expected
    assert analyzer.confined(model.region_id(*cell), use_cache=False) is expected


def test_island_cannot_grow_next_to_another_island():
    # Both cells the 3 could add next touch the 2.
    model = NurikabeModel.from_state_text(
        "3 ? ?\n"
        "# ? 2\n"
    )
    analyzer = ConfinementAnalyzer(model)
    assert analyzer.confined(model.region_id(0, 0)) is True
    assert analyzer.confined(model.region_id(2, 1)) is False


def test_verboten_cell():
    model = NurikabeModel.from_state_text("2 ? .\n")
    analyzer = ConfinementAnalyzer(model)
    island = model.region_id(0, 0)
    assert analyzer.confined(island) is False
    assert analyzer.confined(island, {(1, 0)}) is True
    # A restricted call on an uncached region fills the cache first.
    fresh = ConfinementAnalyzer(model)
    assert fresh.confined(island, {(1, 0)}) is True


def cache_agreement_cases(model):
    cases = []
    for rid in sorted(model.regions):
        cases.append((rid, frozenset()))
        for u in model.unknown_cells():
            cases.append((rid, frozenset({u})))
            cases.append((rid, frozenset({u}) | model.unknown_neighbors(*u)))
    return cases


@pytest.mark.parametrize("puzzle, steps", [
    ("wikipedia_easy.nu.txt", 0),
    ("wikipedia_easy.nu.txt", 3),
    ("nikoli_1.nu.txt", 2),
])
def test_cache_agrees_with_fresh_computation(puzzle, steps):
    model = load_puzzle(puzzle)
    solver = NurikabeSolver(model, guessing=False)
    for _ in range(steps):
        if solver.solve() is not SitRep.KEEP_GOING:
            break

    cached = ConfinementAnalyzer(model)
    for rid, verboten in cache_agreement_cases(model):
        expected = ConfinementAnalyzer(model).confined(rid, verboten, use_cache=False)
        assert cached.confined(rid, verboten) is expected, (rid, sorted(verboten))
