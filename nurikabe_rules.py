import time
from typing import Callable, Iterable, List, Optional, Set, Tuple

from nurikabe_model import (
    NurikabeModel, StepResult, StepRecord, SitRep, Coord,
    UNKNOWN, WHITE, BLACK,
)
from nurikabe_reachability import ReachabilityAnalyzer
from nurikabe_confinement import ConfinementAnalyzer

# Global registry for rules: list of (priority, func, name)
_RULES = []


def solver_rule(priority: int, name: str, top_level_only: bool = False) -> Callable:
    """Decorator to register a solver rule with a priority and a descriptive name.

    Rules run cheapest first; the first one that returns a result ends the step.
    Top-level-only rules are skipped by solvers exploring a hypothesis.
    """
    def decorator(func: Callable) -> Callable:
        func._rule_name = name
        func._top_level_only = top_level_only
        _RULES.append((priority, func, name))
        return func
    return decorator


CONTRADICTION_IN_MARKING = (" (Contradiction found! Attempted to fuse two numbered regions"
                            " or mark an already known cell.)")


class NurikabeSolver:
    def __init__(self, model: NurikabeModel, guessing: bool = True,
                 record_steps: bool = True) -> None:
        self.model = model
        self.guessing = guessing
        self.record_steps = record_steps
        self.last_step: Optional[StepResult] = None
        self._steps: List[StepRecord] = []

        # Both analyzers are rebuilt at every step: the confinement cache
        # only holds while the grid is unchanged.
        self.reachability = ReachabilityAnalyzer(model)
        self.confinement = ConfinementAnalyzer(model)

        self._record(StepResult([], "I'm okay to go!", "Start"))

    @property
    def steps(self) -> Tuple[StepRecord, ...]:
        return tuple(self._steps)

    def _record(self, res: StepResult) -> None:
        self.last_step = res
        if not self.record_steps:
            return
        self._steps.append(StepRecord(
            message=res.message,
            rule=res.rule,
            cells=self.model.snapshot(),
            changed=frozenset(res.changed_cells),
            failed_guesses=res.failed_guesses,
            failed_coords=frozenset(res.failed_coords),
            timestamp=time.perf_counter(),
        ))

    def solve(self) -> SitRep:
        return self.step().sitrep

    def run(self) -> SitRep:
        """Step until a terminal situation is reached."""
        sitrep = SitRep.KEEP_GOING
        while sitrep is SitRep.KEEP_GOING:
            sitrep = self.solve()
        return sitrep

    def step(self) -> StepResult:
        self.reachability = ReachabilityAnalyzer(self.model)
        self.confinement = ConfinementAnalyzer(self.model)

        # Before declaring victory, look for contradictions.
        if self.model.known() == self.model.area:
            res = self.detect_contradictions()
            if res is None:
                res = StepResult([], "I'm done!", "Done", SitRep.SOLUTION_FOUND)
            self._record(res)
            return res

        for _, func, name in sorted(_RULES, key=lambda x: x[0]):
            if func._top_level_only and not self.guessing:
                continue
            res = func(self)
            if res:
                if not res.rule:
                    res.rule = name
                self._record(res)
                return res

        res = StepResult([], "I'm stumped!", "None", SitRep.CANNOT_PROCEED)
        self._record(res)
        return res

    def process(self, mark_as_black: Set[Coord], mark_as_white: Set[Coord], message: str,
                failed_guesses: int = 0,
                failed_coords: Iterable[Coord] = ()) -> Optional[StepResult]:
        """Apply one rule's conclusions. Returns None when there is nothing to mark."""
        if not mark_as_black and not mark_as_white:
            return None

        sitrep = SitRep.KEEP_GOING
        for color, coords in ((BLACK, mark_as_black), (WHITE, mark_as_white)):
            for x, y in sorted(coords):
                if self.model.mark(color, x, y) is SitRep.CONTRADICTION_FOUND:
                    sitrep = SitRep.CONTRADICTION_FOUND
                    break
            if sitrep is SitRep.CONTRADICTION_FOUND:
                message += CONTRADICTION_IN_MARKING
                break

        return StepResult(
            changed_cells=sorted(mark_as_black | mark_as_white),
            message=message,
            sitrep=sitrep,
            failed_guesses=failed_guesses,
            failed_coords=sorted(failed_coords),
        )

    def _partial(self, region) -> bool:
        return (region.black and region.size < self.model.total_black
                or region.white
                or region.numbered and region.size < region.number)

    # ----------------------------
    # Propagation rules
    # ----------------------------

    @solver_rule(priority=1, name="Complete islands")
    def analyze_complete_islands(self) -> Optional[StepResult]:
        mark_as_black: Set[Coord] = set()
        for r in self.model.regions.values():
            if r.complete:
                mark_as_black |= r.unknowns
        return self.process(mark_as_black, set(), "Complete islands found.")

    @solver_rule(priority=2, name="Single liberties")
    def analyze_single_liberties(self) -> Optional[StepResult]:
        """A partial region that can expand into only one cell must expand there."""
        mark_as_black: Set[Coord] = set()
        mark_as_white: Set[Coord] = set()
        for r in self.model.regions.values():
            if self._partial(r) and len(r.unknowns) == 1:
                (mark_as_black if r.black else mark_as_white).add(next(iter(r.unknowns)))
        return self.process(mark_as_black, mark_as_white,
                            "Expanded partial regions with only one liberty.")

    @solver_rule(priority=3, name="Dual liberties")
    def analyze_dual_liberties(self) -> Optional[StepResult]:
        """An N - 1 island with two diagonal liberties can't use the far corner."""
        mark_as_black: Set[Coord] = set()
        for r in self.model.regions.values():
            if not (r.numbered and r.size == r.number - 1 and len(r.unknowns) == 2):
                continue
            (x1, y1), (x2, y2) = sorted(r.unknowns)
            if abs(x1 - x2) != 1 or abs(y1 - y2) != 1:
                continue
            p = (x2, y1) if (x1, y2) in r.coords else (x1, y2)
            # The far cell may already be black, or part of this island.
            if self.model.cell(*p) == UNKNOWN:
                mark_as_black.add(p)
        return self.process(mark_as_black, set(),
                            "N - 1 islands with exactly two diagonal liberties found.")

    @solver_rule(priority=4, name="Unreachable cells")
    def analyze_unreachable_cells(self) -> Optional[StepResult]:
        mark_as_black = {
            (x, y)
            for x in range(self.model.width)
            for y in range(self.model.height)
            if self.reachability.unreachable(x, y)
        }
        return self.process(mark_as_black, set(), "Unreachable cells blackened.")

    @solver_rule(priority=5, name="Potential pools")
    def analyze_potential_pools(self) -> Optional[StepResult]:
        """Squares of one unknown and three black cells, or two unknown and two black cells."""
        model = self.model
        mark_as_white: Set[Coord] = set()
        for x in range(model.width - 1):
            for y in range(model.height - 1):
                block = sorted(
                    ((model.cell(a, b), a, b) for a, b in ((x, y), (x + 1, y), (x, y + 1), (x + 1, y + 1))),
                    key=lambda t: t[0],
                )
                states = [t[0] for t in block]
                if states == [UNKNOWN, BLACK, BLACK, BLACK]:
                    mark_as_white.add((block[0][1], block[0][2]))
                elif states == [UNKNOWN, UNKNOWN, BLACK, BLACK]:
                    # If imagining A black makes B unreachable, A must be white.
                    for a, b in ((block[0], block[1]), (block[1], block[0])):
                        if self.reachability.unreachable(b[1], b[2], {(a[1], a[2])}):
                            mark_as_white.add((a[1], a[2]))
        return self.process(set(), mark_as_white, "Whitened cells to prevent pools.")

    # ----------------------------
    # Contradictions and confinement
    # ----------------------------

    @solver_rule(priority=6, name="Contradiction detection")
    def detect_contradictions(self) -> Optional[StepResult]:
        model = self.model

        def uh_oh(what: str) -> StepResult:
            return StepResult([], f"Contradiction found! {what} detected.",
                              "Contradiction detection", SitRep.CONTRADICTION_FOUND)

        for x in range(model.width - 1):
            for y in range(model.height - 1):
                if all(model.cell(a, b) == BLACK
                       for a, b in ((x, y), (x + 1, y), (x, y + 1), (x + 1, y + 1))):
                    return uh_oh("Pool")

        # Gigantic black regions are caught by counting black cells.
        for r in model.regions.values():
            if (r.white and self.reachability.impossibly_big_white_region(r.size)
                    or r.numbered and r.size > r.number):
                return uh_oh("Gigantic region")

        black_cells = sum(r.size for r in model.regions.values() if r.black)
        white_cells = sum(r.size for r in model.regions.values() if not r.black)
        if black_cells > model.total_black:
            return uh_oh("Too many black cells")
        if white_cells > model.area - model.total_black:
            return uh_oh("Too many white/numbered cells")

        for rid in list(model.regions):
            if self.confinement.confined(rid):
                return uh_oh("Confined region")
        return None

    @solver_rule(priority=7, name="Confinement analysis")
    def analyze_confinement(self) -> Optional[StepResult]:
        """Imagine an unknown cell black or white; if a region gets confined, it's the other color."""
        model = self.model
        mark_as_black: Set[Coord] = set()
        mark_as_white: Set[Coord] = set()

        for x in range(model.width):
            for y in range(model.height):
                if model.cell(x, y) != UNKNOWN:
                    continue
                verboten = {(x, y)}
                for rid, r in model.regions.items():
                    if self.confinement.confined(rid, verboten):
                        (mark_as_black if r.black else mark_as_white).add((x, y))

        # A white cell added to one island can confine another island.
        for rid, r in model.regions.items():
            if not (r.numbered and r.size < r.number):
                continue
            for u in sorted(r.unknowns):
                verboten = {u} | model.unknown_neighbors(*u)
                for kid, k in model.regions.items():
                    if kid != rid and k.numbered and self.confinement.confined(kid, verboten):
                        mark_as_black.add(u)

        return self.process(mark_as_black, mark_as_white, "Confinement analysis succeeded.")

    # ----------------------------
    # Hypotheses
    # ----------------------------

    def guessing_order(self) -> List[Coord]:
        """Unknown cells, shuffled, then stably sorted by distance to the nearest white cell."""
        model = self.model
        unknowns: List[Coord] = []
        whites: List[Coord] = []
        for x in range(model.width):
            for y in range(model.height):
                s = model.cell(x, y)
                if s == UNKNOWN:
                    unknowns.append((x, y))
                elif s == WHITE:
                    whites.append((x, y))

        model.rng.shuffle(unknowns)

        # No white cells: every distance is the same placeholder.
        placeholder = model.width + model.height

        def manhattan(p: Coord) -> int:
            return min((abs(p[0] - wx) + abs(p[1] - wy) for wx, wy in whites), default=placeholder)

        return sorted(unknowns, key=manhattan)

    @solver_rule(priority=8, name="Hypotheticals", top_level_only=True)
    def analyze_hypotheticals(self) -> Optional[StepResult]:
        failed_guesses = 0
        failed_coords: Set[Coord] = set()

        for x, y in self.guessing_order():
            for color in (BLACK, WHITE):
                other_color = WHITE if color == BLACK else BLACK

                other = self.model.copy()
                sitrep = other.mark(color, x, y)
                if sitrep is SitRep.KEEP_GOING:
                    sitrep = NurikabeSolver(other, guessing=False, record_steps=False).run()

                if sitrep is SitRep.CONTRADICTION_FOUND:
                    return self._conclude(other_color, (x, y), "Hypothetical contradiction found.",
                                          failed_guesses, failed_coords)
                if sitrep is SitRep.SOLUTION_FOUND:
                    # Assumes the puzzle has a unique solution.
                    return self._conclude(color, (x, y), "Hypothetical solution found.",
                                          failed_guesses, failed_coords)

                failed_guesses += 1
                failed_coords.add((x, y))

        return None

    def _conclude(self, color: int, p: Coord, message: str, failed_guesses: int,
                  failed_coords: Set[Coord]) -> Optional[StepResult]:
        if color == BLACK:
            return self.process({p}, set(), message, failed_guesses, failed_coords)
        return self.process(set(), {p}, message, failed_guesses, failed_coords)
