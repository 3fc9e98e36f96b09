import heapq
from typing import AbstractSet, Dict, List, Set

from nurikabe_model import NurikabeModel, Region, Coord, InvariantError

# Per-cell bookkeeping for the flood fill.
NONE = 0
OPEN = 1
CLOSED = 2
VERBOTEN = 3

NO_VERBOTEN: AbstractSet[Coord] = frozenset()


class ConfinementAnalyzer:
    """Flood-fill test: can a region still grow to its final size?

    Black regions must reach the total black count, numbered regions their
    number, and white regions must escape to an island. Verboten cells may not
    be consumed, which simulates that cell taking the opposite color.

    Unrestricted runs record the unknown cells they consumed. A restricted run
    whose verboten cells were never consumed would retrace the same fill, so it
    answers "not confined" without filling. The cache is only valid while the
    grid does not change: use one analyzer per solve step.
    """

    def __init__(self, model: NurikabeModel) -> None:
        self.model = model
        self._consumed: Dict[int, Set[Coord]] = {}

    def needs_more(self, region: Region, size: int) -> bool:
        return (region.black and size < self.model.total_black
                or region.white
                or region.numbered and size < region.number)

    def confined(self, region_id: int, verboten: AbstractSet[Coord] = NO_VERBOTEN,
                 use_cache: bool = True) -> bool:
        if verboten and use_cache:
            if region_id not in self._consumed and self.confined(region_id):
                return True
            if self._consumed[region_id].isdisjoint(verboten):
                return False

        model = self.model
        region = model.regions[region_id]
        width = model.width

        flags: List[int] = [NONE] * (width * model.height)

        # Open: cells we're considering adding. Closed: cells already added.
        for x, y in region.unknowns:
            flags[x + y * width] = OPEN
        for x, y in region.coords:
            flags[x + y * width] = CLOSED
        closed_size = region.size

        # Flag verboten cells last, as they may overwrite open flags.
        for x, y in verboten:
            flags[x + y * width] = VERBOTEN

        # Always consider the lowest open index first.
        heap = [i for i, f in enumerate(flags) if f == OPEN]
        heapq.heapify(heap)

        consumed: Set[Coord] = set()
        if not verboten and use_cache:
            self._consumed[region_id] = consumed

        def open_cell(a: int, b: int) -> None:
            i = a + b * width
            if flags[i] == NONE:
                flags[i] = OPEN
                heapq.heappush(heap, i)

        while self.needs_more(region, closed_size):
            index = -1
            while heap:
                i = heapq.heappop(heap)
                if flags[i] == OPEN:
                    index = i
                    break
            if index < 0:
                break

            flags[index] = NONE
            x, y = index % width, index // width
            area_id = model.region_id(x, y)
            area = None if area_id is None else model.regions[area_id]

            if region.black:
                # Black consumes unknown cells and other black regions.
                if area is not None and not area.black:
                    continue
            elif region.white:
                if area is not None:
                    if area.black:
                        continue
                    if area.numbered:
                        return False  # escaped to an island
            else:
                if area is None:
                    # Islands may never touch, so skip cells next to another island.
                    if any(other_id is not None and other_id != region_id
                           and model.regions[other_id].numbered
                           for other_id in (model.region_id(a, b) for a, b in model.neighbors(x, y))):
                        continue
                elif area.black:
                    continue
                elif area.numbered:
                    raise InvariantError(
                        f"Confinement reached numbered region at ({x},{y}) from another island.")

            if area is None:
                flags[index] = CLOSED
                closed_size += 1
                for a, b in model.neighbors(x, y):
                    open_cell(a, b)
                consumed.add((x, y))
            else:
                for a, b in area.coords:
                    flags[a + b * width] = CLOSED
                closed_size += area.size
                for a, b in area.unknowns:
                    open_cell(a, b)

        return self.needs_more(region, closed_size)
