"""
Eastward flow growth.

Starting from the origin at the western edge, every active flow head spawns
one to three children in neighbouring cells. Move weights favour pure
eastward motion, steer heads away from the northern and southern edges and
push harder eastward near the east edge so heads do not idle there.
"""

from typing import Dict, List, Sequence, Tuple

import structlog

from .alea_prng import AleaPRNG
from .growth import GrowthResult, GrowthStats, GrowthStrategy, place_vertex
from .spatial import SpatialMetrics
from .world_graph import Direction, WorldGraph

logger = structlog.get_logger()

Move = Tuple[int, int]

# Base weight of each move; grid rows grow southward
MOVE_WEIGHTS: Dict[Direction, Tuple[Move, float]] = {
    Direction.EAST: ((1, 0), 3.0),
    Direction.NORTHEAST: ((1, -1), 1.0),
    Direction.SOUTHEAST: ((1, 1), 1.0),
    Direction.NORTH: ((0, -1), 0.25),
    Direction.SOUTH: ((0, 1), 0.25),
}

DIRECTION_SETS: Dict[str, Tuple[Direction, ...]] = {
    "full": (Direction.NORTHEAST, Direction.EAST, Direction.SOUTHEAST, Direction.NORTH, Direction.SOUTH),
    "reduced": (Direction.NORTHEAST, Direction.EAST, Direction.SOUTHEAST),
}

EDGE_ROW_PENALTY = 0.1
NEAR_EDGE_PENALTY = 0.4
NEAR_EDGE_ROWS = 2
EAST_ESCALATION_COLUMNS = 3
EAST_ESCALATION = 2.0


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def branch_count(prng: AleaPRNG, branching_factor: float) -> int:
    """
    Number of children for one flow head.

    At branching factor 1 the split is 60% / 25% / 15% for one, two and
    three branches; at 0 every head continues as a single channel.
    """
    p_one = 1.0 - 0.4 * branching_factor
    p_two = 0.25 * branching_factor
    roll = prng.random()
    if roll < p_one:
        return 1
    if roll < p_one + p_two:
        return 2
    return 3


def weighted_moves(
    grid_x: int,
    grid_y: int,
    directions: Sequence[Direction],
    metrics: SpatialMetrics,
    occupied,
) -> List[Tuple[Move, float]]:
    """Candidate moves from a head with their weights; off-grid and occupied cells are excluded."""
    height = metrics.grid_height
    center_y = metrics.center_row
    distance_to_edge = min(grid_y, height - 1 - grid_y)
    center_bias = max(0.0, 0.7 - distance_to_edge / 10)
    toward_center = _sign(center_y - grid_y)
    near_east = grid_x >= metrics.grid_width - EAST_ESCALATION_COLUMNS

    moves = []
    for direction in directions:
        (dx, dy), weight = MOVE_WEIGHTS[direction]
        nx, ny = grid_x + dx, grid_y + dy
        if not metrics.in_bounds(nx, ny) or (nx, ny) in occupied:
            continue

        if ny <= 0 or ny >= height - 1:
            weight *= EDGE_ROW_PENALTY
        elif ny <= NEAR_EDGE_ROWS or ny >= height - 1 - NEAR_EDGE_ROWS:
            weight *= NEAR_EDGE_PENALTY

        if center_bias > 0 and dy == toward_center:
            weight *= 1 + center_bias

        if near_east:
            weight = weight * EAST_ESCALATION if dx > 0 else weight / EAST_ESCALATION

        moves.append(((dx, dy), weight))
    return moves


def select_weighted_moves(
    moves: List[Tuple[Move, float]], count: int, prng: AleaPRNG
) -> List[Move]:
    """Draw up to ``count`` distinct moves, each proportional to weight among those left."""
    remaining = list(moves)
    selected = []
    while remaining and len(selected) < count:
        index = prng.weighted_index([w for _, w in remaining])
        selected.append(remaining.pop(index)[0])
    return selected


class FlowGrowthStrategy(GrowthStrategy):
    """Column-by-column eastward expansion with branching."""

    name = "flow"

    def grow(self, config, metrics, bands, prng):
        stats = GrowthStats(strategy=self.name)
        graph = WorldGraph()

        if metrics.cell_count == 0:
            logger.warning("Grid has no cells; nothing to grow")
            stats.stalled = True
            return GrowthResult(graph=graph, stats=stats)

        directions = DIRECTION_SETS[config.direction_set]
        origin = place_vertex(graph, metrics, bands, 0, metrics.center_row, is_origin=True)
        logger.info("Starting flow growth", origin=(0, metrics.center_row), directions=config.direction_set)

        heads = [origin]
        max_iterations = metrics.cell_count
        east_column = metrics.grid_width - 1

        while heads and stats.iterations < max_iterations:
            stats.iterations += 1
            next_heads = []

            for head in heads:
                vertex = graph.vertices[head]
                if vertex.grid_x >= east_column:
                    continue

                moves = weighted_moves(
                    vertex.grid_x, vertex.grid_y, directions, metrics, graph.occupied_cells()
                )
                if not moves:
                    continue

                count = branch_count(prng, config.branching_factor)
                for dx, dy in select_weighted_moves(moves, count, prng):
                    child = place_vertex(graph, metrics, bands, vertex.grid_x + dx, vertex.grid_y + dy)
                    graph.add_edge(head, child)
                    next_heads.append(child)

            heads = next_heads

        stats.vertices = len(graph)
        stats.edges = len(graph.edges)
        stats.reached_east = any(v.grid_x >= east_column for v in graph.vertices)
        stats.stalled = not stats.reached_east

        if stats.stalled:
            logger.warning(
                "Flow growth stalled before the east edge",
                easternmost=max(v.grid_x for v in graph.vertices),
                grid_width=metrics.grid_width,
            )
        logger.info("Flow growth complete", vertices=stats.vertices, edges=stats.edges, sweeps=stats.iterations)
        return GrowthResult(graph=graph, stats=stats)
