"""
Ecosystem dithering near band boundaries, and the eastern marsh pass.

Dithering is computed from a snapshot of the pre-dither vertices: each
vertex draws at most one outcome from its original ecosystem, and only the
ecosystems of the immediately adjacent bands are ever offered.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import structlog

from .alea_prng import AleaPRNG
from .ecosystems import TERMINAL_ECOSYSTEM, Ecosystem
from .spatial import EcosystemBand, SpatialMetrics, find_band_index
from .world_graph import WorldGraph, WorldVertex, replace_ecosystem

logger = structlog.get_logger()

STAY_WEIGHT = 1.0


@dataclass
class DitheringStats:
    total_vertices: int = 0
    eligible: int = 0  # vertices offered at least one neighbouring ecosystem
    dithered: int = 0
    transitions: Dict[str, int] = field(default_factory=dict)
    marsh_assigned: int = 0
    marsh_column: int = -1

    def to_dict(self) -> Dict:
        return {
            "total_vertices": self.total_vertices,
            "eligible": self.eligible,
            "dithered": self.dithered,
            "transitions": dict(self.transitions),
            "marsh_assigned": self.marsh_assigned,
            "marsh_column": self.marsh_column,
        }


def transition_probability(distance: float, zone_width: float, strength: float) -> float:
    """Gaussian falloff from a band boundary; zero outside the dithering zone."""
    if zone_width <= 0 or distance > zone_width:
        return 0.0
    normalized = distance / zone_width
    return strength * math.exp(-((2 * normalized) ** 2))


def dithering_options(
    vertex: WorldVertex, bands: Sequence[EcosystemBand], strength: float
) -> List[Tuple[Ecosystem, float]]:
    """
    Weighted outcomes for one vertex; the first entry is always "stay".

    Only the bands directly west and east of the vertex's band are
    considered, and nothing is offered inside a pure zone.
    """
    options = [(vertex.ecosystem, STAY_WEIGHT)]
    index = find_band_index(vertex.x, bands)
    if index is None or strength <= 0:
        return options

    band = bands[index]
    if band.in_pure_zone(vertex.x):
        return options

    zone_width = band.width / 2 * strength

    if index > 0:
        p = transition_probability(vertex.x - band.start_x, zone_width, strength)
        if p > 0:
            options.append((bands[index - 1].ecosystem, p))

    if index < len(bands) - 1:
        p = transition_probability(band.end_x - vertex.x, zone_width, strength)
        if p > 0:
            options.append((bands[index + 1].ecosystem, p))

    return options


def apply_ecosystem_dithering(
    graph: WorldGraph,
    bands: Sequence[EcosystemBand],
    strength: float,
    prng: AleaPRNG,
) -> Tuple[WorldGraph, DitheringStats]:
    """
    Probabilistically reassign transition-zone vertices to a neighbouring ecosystem.

    Args:
        graph: Grown graph; not modified
        bands: Band model, west to east
        strength: 0 disables dithering, 1 uses the full zone
        prng: Random stream for the draws

    Returns:
        New graph with updated vertex ecosystems, and statistics
    """
    snapshot = tuple(graph.vertices)
    stats = DitheringStats(total_vertices=len(snapshot))
    transitions: Counter = Counter()
    updated = []

    for vertex in snapshot:
        options = dithering_options(vertex, bands, strength)
        if len(options) == 1:
            updated.append(vertex)
            continue

        stats.eligible += 1
        choice = options[prng.weighted_index([w for _, w in options])][0]
        if choice is not vertex.ecosystem:
            stats.dithered += 1
            transitions[f"{vertex.ecosystem.value}->{choice.value}"] += 1
        updated.append(replace_ecosystem(vertex, choice))

    stats.transitions = dict(sorted(transitions.items()))
    logger.info(
        "Applied ecosystem dithering",
        strength=strength,
        eligible=stats.eligible,
        dithered=stats.dithered,
    )
    return graph.with_vertices(updated), stats


def apply_marsh_boundary(
    graph: WorldGraph,
    metrics: SpatialMetrics,
    bands: Sequence[EcosystemBand],
    stats: DitheringStats = None,
) -> Tuple[WorldGraph, int]:
    """
    Turn every vertex on the grid's east column to marsh.

    Marsh only borders the last band, so the column is left alone when it
    falls outside that band (very narrow worlds) or when growth never reached it.
    """
    if len(graph) == 0 or metrics.grid_width == 0 or not bands:
        return graph, 0

    east_column = metrics.grid_width - 1
    last_band = len(bands) - 1
    count = 0
    updated = []
    for vertex in graph.vertices:
        if vertex.grid_x == east_column and find_band_index(vertex.x, bands) == last_band:
            vertex = replace_ecosystem(vertex, TERMINAL_ECOSYSTEM)
            count += 1
        updated.append(vertex)

    if stats is not None:
        stats.marsh_assigned = count
        stats.marsh_column = east_column if count else -1

    logger.info("Assigned marsh to eastern column", column=east_column, vertices=count)
    return graph.with_vertices(updated), count
