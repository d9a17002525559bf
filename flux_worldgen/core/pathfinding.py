"""
Geometric grid pathfinding.

These functions only know about coordinates, bounds and occupied cells; they
have no notion of ecosystems or vertices.
"""

import math
from dataclasses import dataclass, field
from typing import AbstractSet, List, NamedTuple, Tuple


class GridCoords(NamedTuple):
    grid_x: int
    grid_y: int


@dataclass
class PathfindingConstraints:
    """Limits applied while walking a path."""

    max_steps: int = 100
    min_x: float = 0  # inclusive
    min_y: float = 0  # inclusive
    max_x: float = math.inf  # exclusive
    max_y: float = math.inf  # exclusive
    occupied: AbstractSet[Tuple[int, int]] = field(default_factory=frozenset)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def find_grid_path(
    start: GridCoords,
    end: GridCoords,
    constraints: PathfindingConstraints = None,
) -> List[GridCoords]:
    """
    Greedy diagonal-first path from ``start`` to ``end``.

    Moves diagonally while both axes differ, then along the remaining axis.
    The returned path excludes ``start`` and includes ``end``. An empty list
    means either ``start == end`` or that the target could not be reached
    within the constraints; callers must tell the two apart.
    """
    constraints = constraints or PathfindingConstraints()

    if start == end:
        return []

    path: List[GridCoords] = []
    x, y = start
    steps = 0

    while (x, y) != tuple(end) and steps < constraints.max_steps:
        next_x = x + _sign(end[0] - x)
        next_y = y + _sign(end[1] - y)

        if (
            next_x < constraints.min_x
            or next_y < constraints.min_y
            or next_x >= constraints.max_x
            or next_y >= constraints.max_y
        ):
            break

        if (next_x, next_y) in constraints.occupied:
            break

        x, y = next_x, next_y
        path.append(GridCoords(x, y))
        steps += 1

    if (x, y) == tuple(end):
        return path
    return []


def can_find_grid_path(
    start: GridCoords,
    end: GridCoords,
    constraints: PathfindingConstraints = None,
) -> bool:
    """Whether a path exists, without callers having to interpret an empty result."""
    return start == end or len(find_grid_path(start, end, constraints)) > 0
