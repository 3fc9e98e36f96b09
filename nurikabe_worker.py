import queue
import threading
from dataclasses import dataclass
from typing import Optional, Dict, Any, List

from nurikabe_model import NurikabeModel, PuzzleError, SitRep, StepRecord
from nurikabe_rules import NurikabeSolver


@dataclass
class WorkerCommand:
    kind: str
    payload: Optional[Dict[str, Any]] = None


@dataclass
class WorkerResult:
    kind: str
    payload: Dict[str, Any]


class SolverWorker:
    """Runs the solver off the UI thread.

    Commands: load {"text", "guessing"}, step, solve, cancel, stop.
    Results carry the step records produced since the previous result.
    """

    def __init__(self) -> None:
        self._cmd_q: "queue.Queue[WorkerCommand]" = queue.Queue()
        self._res_q: "queue.Queue[WorkerResult]" = queue.Queue()
        self._stop_evt = threading.Event()
        self._cancel_evt = threading.Event()
        self._thread = threading.Thread(target=self._run, name="SolverWorker", daemon=True)

        self._model: Optional[NurikabeModel] = None
        self._solver: Optional[NurikabeSolver] = None
        self._sent = 0
        self._sitrep = SitRep.KEEP_GOING

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop_evt.set()
        self._cancel_evt.set()
        self._cmd_q.put(WorkerCommand(kind="stop"))
        self._thread.join(timeout=1.0)

    def send(self, cmd: WorkerCommand) -> None:
        # Cancel has to reach a running solve, which doesn't read the queue.
        if cmd.kind == "cancel":
            self._cancel_evt.set()
            return
        self._cmd_q.put(cmd)

    def try_recv(self) -> Optional[WorkerResult]:
        try:
            return self._res_q.get_nowait()
        except queue.Empty:
            return None

    def recv(self, timeout: Optional[float] = None) -> Optional[WorkerResult]:
        try:
            return self._res_q.get(timeout=timeout)
        except queue.Empty:
            return None

    def _new_steps(self) -> List[StepRecord]:
        steps = self._solver.steps[self._sent:]
        self._sent += len(steps)
        return list(steps)

    def _emit(self, kind: str) -> None:
        payload: Dict[str, Any] = {
            "steps": self._new_steps(),
            "sitrep": self._sitrep,
            "known": self._model.known(),
            "cells": self._model.area,
        }
        self._res_q.put(WorkerResult(kind=kind, payload=payload))

    def _error(self, message: str) -> None:
        self._res_q.put(WorkerResult(kind="error", payload={"message": message}))

    def _run(self) -> None:
        while not self._stop_evt.is_set():
            try:
                cmd = self._cmd_q.get(timeout=0.05)
            except queue.Empty:
                continue

            if cmd.kind == "stop":
                return

            if cmd.kind == "load":
                payload = cmd.payload or {}
                try:
                    self._model = NurikabeModel.from_text(payload.get("text", ""))
                except PuzzleError as e:
                    self._error(f"Load failed: {e}")
                    continue
                self._solver = NurikabeSolver(self._model, guessing=payload.get("guessing", True))
                self._sent = 0
                self._sitrep = SitRep.KEEP_GOING
                self._emit("loaded")
                continue

            if self._solver is None:
                self._error("No puzzle loaded.")
                continue

            if cmd.kind == "step":
                try:
                    if self._sitrep is SitRep.KEEP_GOING:
                        self._sitrep = self._solver.solve()
                    self._emit("stepped")
                except Exception as e:
                    self._error(f"Step failed: {e}")
                continue

            if cmd.kind == "solve":
                self._cancel_evt.clear()
                try:
                    while self._sitrep is SitRep.KEEP_GOING and not self._cancel_evt.is_set():
                        self._sitrep = self._solver.solve()
                        self._emit("stepped")
                    self._emit("finished")
                except Exception as e:
                    self._error(f"Solve failed: {e}")
                continue

            self._error(f"Unknown command: {cmd.kind}")
