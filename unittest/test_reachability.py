import pytest
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nurikabe_model import NurikabeModel
from nurikabe_reachability import ReachabilityAnalyzer


@pytest.mark.parametrize("state, cell, expected", [
    # Next to the island, with room to spare.
    ("2 ? ? ?", (1, 0), False),
    # A bridge to the 2 would need too many cells.
    ("2 ? ? ?", (2, 0), True),
    ("2 ? ? ?", (3, 0), True),
    # Touching two islands at once is never allowed.
    ("1 ? 1", (1, 0), True),
    # A white region with no island able to claim it is a dead end.
    (". ? ?", (1, 0), True),
    (". ? ?", (2, 0), True),
    # ...unless an island can still absorb the bridge and the region.
    ("5 ? ? . ?", (1, 0), False),
    ("5 ? ? . ?", (4, 0), False),
    # Known cells are never "unreachable".
    ("2 ? ? ?", (0, 0), False),
    ("2 ? # ?", (2, 0), False),
])
def test_unreachable(state, cell, expected):
    model = NurikabeModel.from_state_text(state)
    assert ReachabilityAnalyzer(model).unreachable(*cell) is expected


def test_unreachable_around_a_corner():
    model = NurikabeModel.from_state_text(
        "3 ? ?\n"
        "# ? ?\n"
        "? ? ?\n"
    )
    analyzer = ReachabilityAnalyzer(model)
    assert analyzer.unreachable(2, 0) is False
    assert analyzer.unreachable(1, 1) is False
    assert analyzer.unreachable(0, 2) is True
    assert analyzer.unreachable(2, 2) is True


def test_discovered_cells_are_treated_as_black():
    model = NurikabeModel.from_state_text("3 ? ? ?")
    analyzer = ReachabilityAnalyzer(model)
    assert analyzer.unreachable(2, 0) is False
    assert analyzer.unreachable(2, 0, {(1, 0)}) is True
    assert analyzer.unreachable(1, 0, {(2, 0)}) is False


def test_discovered_set_is_not_modified():
    model = NurikabeModel.from_state_text("2 ? ? ?")
    discovered = {(1, 0)}
    ReachabilityAnalyzer(model).unreachable(3, 0, discovered)
    assert discovered == {(1, 0)}


def test_impossibly_big_white_region():
    model = NurikabeModel.from_state_text("5 ? ? ? ? ?")
    analyzer = ReachabilityAnalyzer(model)
    # 1 island cell + 1 bridge cell + n white cells must fit in the 5.
    assert analyzer.impossibly_big_white_region(3) is False
    assert analyzer.impossibly_big_white_region(4) is True


def test_impossibly_big_without_islands():
    model = NurikabeModel.from_state_text("? ? ?")
    assert ReachabilityAnalyzer(model).impossibly_big_white_region(1) is True
