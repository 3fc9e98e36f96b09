import collections
from typing import Optional, Set

from nurikabe_model import NurikabeModel, Coord, UNKNOWN


class ReachabilityAnalyzer:
    """Decides whether an unknown cell could still become white in some solution.

    The search imagines a chain of white cells growing from the root and looks
    for the shortest way to join a numbered or white region without joining two
    islands, overfilling an island, or building a white region no island could claim.
    """

    def __init__(self, model: NurikabeModel) -> None:
        self.model = model

    def impossibly_big_white_region(self, n: int) -> bool:
        # A bridge cell is needed to connect the white region to an island.
        return not any(
            r.numbered and r.size + n + 1 <= r.number
            for r in self.model.regions.values()
        )

    def unreachable(self, x_root: int, y_root: int,
                    discovered: Optional[Set[Coord]] = None) -> bool:
        """True if (x_root, y_root) is unknown and can never be white.

        Cells in `discovered` are never stepped on; imagining a cell black
        this way asks whether another cell becomes unreachable as a result.
        """
        model = self.model
        if model.cell(x_root, y_root) != UNKNOWN:
            return False

        discovered = set(discovered) if discovered else set()
        queue = collections.deque([(x_root, y_root, 1)])
        discovered.add((x_root, y_root))

        while queue:
            x, y, n = queue.popleft()

            white_ids: Set[int] = set()
            numbered_ids: Set[int] = set()
            for a, b in model.neighbors(x, y):
                rid = model.region_id(a, b)
                if rid is None:
                    continue
                r = model.regions[rid]
                if r.white:
                    white_ids.add(rid)
                elif r.numbered:
                    numbered_ids.add(rid)

            if len(numbered_ids) > 1:
                continue

            size = sum(model.regions[rid].size for rid in white_ids | numbered_ids)

            if numbered_ids:
                num = model.regions[next(iter(numbered_ids))].number
                if n + size <= num:
                    return False
                continue

            if white_ids:
                if self.impossibly_big_white_region(n + size):
                    continue
                return False

            for a, b in model.neighbors(x, y):
                if model.cell(a, b) == UNKNOWN and (a, b) not in discovered:
                    discovered.add((a, b))
                    queue.append((a, b, n + 1))

        return True
