import pytest
import sys
import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

pytest.importorskip("pygame")
pytest.importorskip("pygame_gui")

from nurikabe_model import StepRecord
from nurikabe_ui import ViewerState, describe_step, log_markup


def make_step(message, rule="Start", failed_guesses=0):
    return StepRecord(
        message=message,
        rule=rule,
        cells=((1, -3),),
        changed=frozenset(),
        failed_guesses=failed_guesses,
        failed_coords=frozenset(),
        timestamp=0.0,
    )


def test_log_markup_escapes_each_line():
    lines = ['Guess <3, 4> & "black"', "it's done"]
    assert log_markup(lines) == (
        "Guess &lt;3, 4&gt; &amp; &quot;black&quot;<br>it&#x27;s done"
    )


def test_log_markup_empty():
    assert log_markup([]) == ""


def test_describe_step():
    state = ViewerState()
    assert describe_step(state) == "No step."
    state.steps = [make_step("I'm okay to go!", failed_guesses=2)]
    state.current = 0
    assert describe_step(state) == "Step 1/1 [Start] I'm okay to go!\n2 guesses failed."
