"""
Graph growth strategies.

A strategy turns a configuration, spatial metrics and band model into an
initial connected place graph. Both engines share vertex placement through
``place_vertex`` so a vertex looks the same whichever engine created it.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

import structlog

from ..config.world_config import WorldGenerationConfig
from .alea_prng import AleaPRNG
from .lichtenberg import LichtenbergConfig, generate_lichtenberg_figure
from .spatial import EcosystemBand, SpatialMetrics, ecosystem_for_position
from .world_graph import ORIGIN_VERTEX_ID, WorldGraph, WorldVertex

logger = structlog.get_logger()


@dataclass
class GrowthStats:
    """Counters describing one growth run."""

    strategy: str
    vertices: int = 0
    edges: int = 0
    iterations: int = 0
    stalled: bool = False
    reached_east: bool = False
    resparks: int = 0
    extension_attempts: int = 0
    skipped_links: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class GrowthResult:
    graph: WorldGraph
    stats: GrowthStats


def vertex_id_for(grid_x: int, grid_y: int) -> str:
    return f"v{grid_x}-{grid_y}"


def place_vertex(
    graph: WorldGraph,
    metrics: SpatialMetrics,
    bands: Sequence[EcosystemBand],
    grid_x: int,
    grid_y: int,
    is_origin: bool = False,
) -> int:
    """Add a vertex at a grid cell, with its ecosystem taken from the band it falls in."""
    x, y = metrics.grid_to_world(grid_x, grid_y)
    vertex = WorldVertex(
        id=ORIGIN_VERTEX_ID if is_origin else vertex_id_for(grid_x, grid_y),
        x=x,
        y=y,
        grid_x=grid_x,
        grid_y=grid_y,
        ecosystem=ecosystem_for_position(x, bands),
        is_origin=is_origin,
    )
    return graph.add_vertex(vertex)


class GrowthStrategy:
    """Base class for growth engines."""

    name = "base"

    def grow(
        self,
        config: WorldGenerationConfig,
        metrics: SpatialMetrics,
        bands: Sequence[EcosystemBand],
        prng: AleaPRNG,
    ) -> GrowthResult:
        raise NotImplementedError


class DischargeGrowthStrategy(GrowthStrategy):
    """
    Lays a discharge figure onto the place grid.

    The figure is grown directly on grid cells, so every connection joins
    8-neighbouring cells and edge angles are multiples of 45 degrees. The
    figure's sub-cell jitter is presentation only and is not carried into
    world coordinates.
    """

    name = "discharge"

    def grow(self, config, metrics, bands, prng):
        stats = GrowthStats(strategy=self.name)
        graph = WorldGraph()

        if metrics.cell_count == 0:
            logger.warning("Grid has no cells; nothing to grow")
            stats.stalled = True
            return GrowthResult(graph=graph, stats=stats)

        max_vertices = min(config.effective_max_vertices or metrics.cell_count, metrics.cell_count)
        min_vertices = min(config.min_vertices, max_vertices)
        figure_config = LichtenbergConfig(
            width=metrics.grid_width,
            height=metrics.grid_height,
            start_x=0,
            start_y=metrics.center_row,
            min_vertices=min_vertices,
            max_vertices=max_vertices,
        )
        figure = generate_lichtenberg_figure(figure_config, prng)

        stats.iterations = figure.stats.get("iterations", 0)
        stats.resparks = figure.stats.get("resparks", 0)
        stats.extension_attempts = figure.stats.get("extension_attempts", 0)

        if not figure.vertices:
            place_vertex(graph, metrics, bands, 0, metrics.center_row, is_origin=True)
            stats.stalled = True
            stats.vertices = 1
            logger.warning("Discharge produced no channels; world holds the origin only")
            return GrowthResult(graph=graph, stats=stats)

        origin_cell = self._origin_cell(
            [v.cell for v in figure.vertices], (0, metrics.center_row)
        )

        handles: Dict[str, int] = {}
        for figure_vertex in figure.vertices:
            gx, gy = figure_vertex.cell
            handles[figure_vertex.id] = place_vertex(
                graph, metrics, bands, gx, gy, is_origin=(figure_vertex.cell == origin_cell)
            )

        for connection in figure.connections:
            a = handles.get(connection.from_id)
            b = handles.get(connection.to_id)
            if a is None or b is None:
                stats.skipped_links += 1
                logger.warning(
                    "Skipping connection to filtered vertex",
                    from_id=connection.from_id,
                    to_id=connection.to_id,
                )
                continue
            graph.add_edge(a, b)

        stats.vertices = len(graph)
        stats.edges = len(graph.edges)
        stats.reached_east = max(v.grid_x for v in graph.vertices) >= metrics.grid_width - 1
        stats.stalled = min_vertices > 0 and stats.vertices < min_vertices
        if stats.stalled:
            logger.info("Discharge fell short of minimum vertices", vertices=stats.vertices, target=min_vertices)

        return GrowthResult(graph=graph, stats=stats)

    @staticmethod
    def _origin_cell(cells: List, preferred) -> Optional[tuple]:
        """The preferred origin cell if present, else the westernmost cell nearest the centre row."""
        if preferred in cells:
            return preferred
        return min(cells, key=lambda c: (c[0], abs(c[1] - preferred[1]), c[1]))
