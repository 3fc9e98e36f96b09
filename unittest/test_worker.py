import pytest
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nurikabe_model import SitRep
from nurikabe_worker import SolverWorker, WorkerCommand

TIMEOUT = 10.0


@pytest.fixture
def worker():
    w = SolverWorker()
    w.start()
    yield w
    w.stop()


def recv_until(worker, kind):
    results = []
    while True:
        res = worker.recv(timeout=TIMEOUT)
        assert res is not None, f"no '{kind}' result from the worker"
        results.append(res)
        if res.kind in (kind, "error"):
            return results


def test_load_step_solve(worker):
    worker.send(WorkerCommand(kind="load", payload={"text": "1 .\n. .\n"}))
    (loaded,) = recv_until(worker, "loaded")
    assert loaded.payload["sitrep"] is SitRep.KEEP_GOING
    assert loaded.payload["known"] == 1
    assert loaded.payload["cells"] == 4
    assert [s.rule for s in loaded.payload["steps"]] == ["Start"]

    worker.send(WorkerCommand(kind="step"))
    (stepped,) = recv_until(worker, "stepped")
    assert [s.rule for s in stepped.payload["steps"]] == ["Complete islands"]
    assert stepped.payload["known"] == 3

    worker.send(WorkerCommand(kind="solve"))
    results = recv_until(worker, "finished")
    assert results[-1].kind == "finished"
    assert results[-1].payload["sitrep"] is SitRep.SOLUTION_FOUND
    assert results[-1].payload["known"] == 4
    rules = [s.rule for res in results for s in res.payload["steps"]]
    assert rules == ["Single liberties", "Done"]


def test_step_after_the_end_sends_no_new_steps(worker):
    worker.send(WorkerCommand(kind="load", payload={"text": "1 .\n. .\n"}))
    recv_until(worker, "loaded")
    worker.send(WorkerCommand(kind="solve"))
    recv_until(worker, "finished")

    worker.send(WorkerCommand(kind="step"))
    (stepped,) = recv_until(worker, "stepped")
    assert stepped.payload["steps"] == []
    assert stepped.payload["sitrep"] is SitRep.SOLUTION_FOUND


def test_load_without_guessing(worker):
    text = "2 . .\n. . .\n. . 2\n"
    worker.send(WorkerCommand(kind="load", payload={"text": text, "guessing": False}))
    recv_until(worker, "loaded")
    worker.send(WorkerCommand(kind="solve"))
    results = recv_until(worker, "finished")
    assert results[-1].payload["sitrep"] is SitRep.CANNOT_PROCEED


def test_bad_puzzle_reports_an_error(worker):
    worker.send(WorkerCommand(kind="load", payload={"text": "1 .\n. . .\n"}))
    (res,) = recv_until(worker, "loaded")
    assert res.kind == "error"
    assert res.payload["message"].startswith("Load failed:")


def test_commands_need_a_puzzle(worker):
    worker.send(WorkerCommand(kind="step"))
    (res,) = recv_until(worker, "stepped")
    assert res.kind == "error"
    assert res.payload["message"] == "No puzzle loaded."


def test_unknown_command(worker):
    worker.send(WorkerCommand(kind="load", payload={"text": "1 .\n. .\n"}))
    recv_until(worker, "loaded")
    worker.send(WorkerCommand(kind="bogus"))
    (res,) = recv_until(worker, "never")
    assert res.payload["message"] == "Unknown command: bogus"


def test_cancel_before_solve_does_not_stick(worker):
    worker.send(WorkerCommand(kind="cancel"))
    worker.send(WorkerCommand(kind="load", payload={"text": "1 .\n. .\n"}))
    recv_until(worker, "loaded")
    worker.send(WorkerCommand(kind="solve"))
    results = recv_until(worker, "finished")
    assert results[-1].payload["sitrep"] is SitRep.SOLUTION_FOUND
