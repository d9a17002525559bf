"""
Topology post-processing: square completion and connectivity adjustment.

Both passes take a graph and return a new one; edges are only ever added.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

import structlog

from .ecosystems import TARGET_CONNECTIONS, Ecosystem
from .pathfinding import GridCoords, PathfindingConstraints, can_find_grid_path
from .world_graph import Direction, WorldGraph, compass_direction

logger = structlog.get_logger()

# Ray search order used when looking for a new neighbour
VERTICAL_FIRST = (
    Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.WEST,
    Direction.NORTHEAST, Direction.SOUTHEAST, Direction.NORTHWEST, Direction.SOUTHWEST,
)
HORIZONTAL_FIRST = (
    Direction.EAST, Direction.WEST, Direction.NORTH, Direction.SOUTH,
    Direction.NORTHEAST, Direction.SOUTHEAST, Direction.NORTHWEST, Direction.SOUTHWEST,
)


@dataclass
class SquareCompletionStats:
    crossings_found: int = 0
    edges_added: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class EcosystemConnectivity:
    """Connection counts for one ecosystem before and after adjustment."""

    vertices: int
    target: float
    average_before: float
    average_after: float = 0.0
    edges_added: int = 0
    exhausted: int = 0


@dataclass
class ConnectivityStats:
    ecosystems: Dict[str, EcosystemConnectivity] = field(default_factory=dict)
    edges_added: int = 0
    components: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


def complete_squares(graph: WorldGraph) -> Tuple[WorldGraph, SquareCompletionStats]:
    """
    Close crossed diagonals into squares.

    Where two diagonal edges cross inside one 2x2 cell, the two missing
    horizontal sides of that cell are added. Existing sides are left alone.
    """
    result = graph.copy()
    stats = SquareCompletionStats()
    seen: Set[Tuple[int, int]] = set()

    for edge in list(graph.edges):
        a = graph.vertices[edge.from_vertex]
        b = graph.vertices[edge.to_vertex]
        dx, dy = b.grid_x - a.grid_x, b.grid_y - a.grid_y
        if abs(dx) != 1 or abs(dy) != 1:
            continue

        corner = (min(a.grid_x, b.grid_x), min(a.grid_y, b.grid_y))
        if corner in seen:
            continue

        # The crossing diagonal joins the other two corners of the cell
        c = result.vertex_at(a.grid_x, b.grid_y)
        d = result.vertex_at(b.grid_x, a.grid_y)
        if c is None or d is None or not result.has_edge(c, d):
            continue

        seen.add(corner)
        stats.crossings_found += 1
        # a-d share a's row and c-b share b's row
        for left, right in ((edge.from_vertex, d), (c, edge.to_vertex)):
            if result.add_edge(left, right) is not None:
                stats.edges_added += 1

    logger.info("Square completion", crossings=stats.crossings_found, edges_added=stats.edges_added)
    return result, stats


def average_connections(graph: WorldGraph, handles: List[int]) -> float:
    if not handles:
        return 0.0
    return sum(graph.degree(h) for h in handles) / len(handles)


def used_directions(graph: WorldGraph, handle: int) -> Set[Direction]:
    """Compass directions already taken by a vertex's links."""
    vertex = graph.vertices[handle]
    directions = set()
    for other in graph.neighbors(handle):
        target = graph.vertices[other]
        directions.add(compass_direction(target.grid_x - vertex.grid_x, target.grid_y - vertex.grid_y))
    return directions


def find_link_candidate(
    graph: WorldGraph,
    handle: int,
    radius: int,
    constraints: PathfindingConstraints,
) -> Optional[int]:
    """
    Nearest vertex along one of the eight rays that can take a new link.

    Candidates must be unlinked, reachable over unoccupied cells and have the
    facing direction free on both ends. Mountains search vertically first.
    """
    vertex = graph.vertices[handle]
    order = VERTICAL_FIRST if vertex.ecosystem is Ecosystem.MOUNTAIN else HORIZONTAL_FIRST
    taken = used_directions(graph, handle)
    start = GridCoords(vertex.grid_x, vertex.grid_y)

    for distance in range(1, radius + 1):
        for direction in order:
            if direction in taken:
                continue
            dx, dy = direction.vector
            target = (vertex.grid_x + dx * distance, vertex.grid_y + dy * distance)
            other = graph.vertex_at(*target)
            if other is None or graph.has_edge(handle, other):
                continue
            if direction.opposite in used_directions(graph, other):
                continue

            if can_find_grid_path(
                start,
                GridCoords(*target),
                PathfindingConstraints(
                    max_steps=radius,
                    max_x=constraints.max_x,
                    max_y=constraints.max_y,
                    occupied=constraints.occupied - {target},
                ),
            ):
                return other
    return None


def adjust_connectivity(
    graph: WorldGraph,
    radius: int = 2,
    targets: Mapping[Ecosystem, float] = TARGET_CONNECTIONS,
) -> Tuple[WorldGraph, ConnectivityStats]:
    """
    Top up each ecosystem's average connections toward its target.

    The least-connected vertex is linked to its nearest eligible candidate;
    a vertex with no candidate is set aside. An ecosystem is done when its
    average meets the target or every vertex has been set aside.
    """
    result = graph.copy()
    stats = ConnectivityStats()

    if len(result) == 0:
        return result, stats

    occupied = frozenset(result.occupied_cells())
    constraints = PathfindingConstraints(
        max_x=max(v.grid_x for v in result.vertices) + 1,
        max_y=max(v.grid_y for v in result.vertices) + 1,
        occupied=occupied,
    )

    for ecosystem in Ecosystem:
        handles = result.handles_in(ecosystem)
        if not handles:
            continue

        target = targets.get(ecosystem, 0.0)
        summary = EcosystemConnectivity(
            vertices=len(handles),
            target=target,
            average_before=average_connections(result, handles),
        )
        exhausted: Set[int] = set()

        while average_connections(result, handles) < target:
            open_handles = [h for h in handles if h not in exhausted]
            if not open_handles:
                break
            handle = min(open_handles, key=lambda h: (result.degree(h), h))
            partner = find_link_candidate(result, handle, radius, constraints)
            if partner is None:
                exhausted.add(handle)
                continue
            result.add_edge(handle, partner)
            summary.edges_added += 1

        summary.average_after = average_connections(result, handles)
        summary.exhausted = len(exhausted)
        stats.ecosystems[ecosystem.value] = summary
        stats.edges_added += summary.edges_added

        logger.info(
            "Connectivity adjusted",
            ecosystem=ecosystem.value,
            before=round(summary.average_before, 2),
            after=round(summary.average_after, 2),
            target=target,
            edges_added=summary.edges_added,
        )

    stats.components = result.count_components()
    return result, stats
