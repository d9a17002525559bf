"""
World generation pipeline.

Stages, in order:
1. Spatial metrics and ecosystem bands
2. Growth (flow or discharge strategy)
3. Square completion
4. Ecosystem dithering, then the eastern marsh pass
5. Connectivity adjustment
6. Address assignment

Every random draw comes from Alea streams forked from the configured seed,
so a seed and configuration fully determine the world.
"""

import time
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

import structlog

from ..config.config import settings
from ..config.world_config import WorldGenerationConfig
from ..utils.random import derive_seed, set_random_seed
from .addresses import generate_place_address
from .alea_prng import AleaPRNG
from .dithering import DitheringStats, apply_ecosystem_dithering, apply_marsh_boundary
from .flow_growth import FlowGrowthStrategy
from .growth import DischargeGrowthStrategy, GrowthStats, GrowthStrategy
from .spatial import EcosystemBand, SpatialMetrics, calculate_spatial_metrics, define_ecosystem_bands
from .topology import ConnectivityStats, SquareCompletionStats, adjust_connectivity, complete_squares
from .world_graph import WorldGraph, WorldVertex

logger = structlog.get_logger()

GROWTH_STRATEGY_REGISTRY = {
    FlowGrowthStrategy.name: FlowGrowthStrategy,
    DischargeGrowthStrategy.name: DischargeGrowthStrategy,
}


def get_growth_strategy(name: str) -> GrowthStrategy:
    try:
        return GROWTH_STRATEGY_REGISTRY[name]()
    except KeyError:
        raise ValueError(f"Unknown growth strategy: {name}") from None


@dataclass
class WorldGenerationResult:
    """A finished world and everything needed to reproduce or re-export it."""

    graph: WorldGraph
    bands: List[EcosystemBand]
    metrics: SpatialMetrics
    config: WorldGenerationConfig
    growth_stats: GrowthStats
    square_stats: SquareCompletionStats
    dithering_stats: DitheringStats
    connectivity_stats: ConnectivityStats
    version: str

    @property
    def vertices(self) -> List[WorldVertex]:
        return self.graph.vertices

    @property
    def edges(self):
        return self.graph.edges

    @property
    def origin(self) -> Optional[WorldVertex]:
        handle = self.graph.origin
        return None if handle is None else self.graph.vertices[handle]

    def ecosystem_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for vertex in self.graph.vertices:
            counts[vertex.ecosystem.value] = counts.get(vertex.ecosystem.value, 0) + 1
        return counts

    def summary(self) -> Dict:
        origin = self.origin
        return {
            "seed": self.config.seed,
            "version": self.version,
            "vertices": len(self.graph),
            "edges": len(self.graph.edges),
            "grid": {"width": self.metrics.grid_width, "height": self.metrics.grid_height},
            "origin": None if origin is None else {"grid_x": origin.grid_x, "grid_y": origin.grid_y},
            "ecosystems": self.ecosystem_counts(),
            "components": self.graph.count_components(),
            "growth": self.growth_stats.to_dict(),
            "squares": self.square_stats.to_dict(),
            "dithering": self.dithering_stats.to_dict(),
            "connectivity": self.connectivity_stats.to_dict(),
        }


def resolve_seed(config: WorldGenerationConfig) -> WorldGenerationConfig:
    """Fill in a wall-clock seed when none was given."""
    if config.seed is not None:
        return config
    set_random_seed(time.time())
    seed = derive_seed()
    logger.info("No seed supplied; derived one from the clock", seed=seed)
    return config.with_seed(seed)


def assign_addresses(graph: WorldGraph) -> WorldGraph:
    """Give every vertex its final address; run only after ecosystems are settled."""
    return graph.with_vertices(
        [replace(v, address=generate_place_address(v)) for v in graph.vertices]
    )


def generate_world(config: Optional[WorldGenerationConfig] = None) -> WorldGenerationResult:
    """
    Generate a complete world.

    Args:
        config: Generation options; defaults are used when omitted

    Returns:
        WorldGenerationResult with the final graph, band model and statistics

    Raises:
        ConfigurationError: If the configuration is out of range
    """
    config = resolve_seed((config or WorldGenerationConfig()).validate())
    prng = AleaPRNG(config.seed)
    logger.info(
        "Generating world",
        seed=config.seed,
        strategy=config.growth_strategy,
        width_km=config.world_width_km,
        height_km=config.world_height_km,
    )

    metrics = calculate_spatial_metrics(config)
    bands = define_ecosystem_bands(metrics, pure_ratio=config.pure_ratio)
    logger.info("Spatial metrics", grid_width=metrics.grid_width, grid_height=metrics.grid_height)

    strategy = get_growth_strategy(config.growth_strategy)
    grown = strategy.grow(config, metrics, bands, prng.fork("growth"))
    graph = grown.graph
    growth_edges = len(graph.edges)

    graph, square_stats = complete_squares(graph)
    graph, dithering_stats = apply_ecosystem_dithering(
        graph, bands, config.dithering_strength, prng.fork("dithering")
    )
    graph, _ = apply_marsh_boundary(graph, metrics, bands, dithering_stats)
    graph, connectivity_stats = adjust_connectivity(graph, radius=config.connectivity_radius)
    graph = assign_addresses(graph)

    logger.info(
        "World generated",
        vertices=len(graph),
        growth_edges=growth_edges,
        edges=len(graph.edges),
        components=connectivity_stats.components,
    )

    return WorldGenerationResult(
        graph=graph,
        bands=bands,
        metrics=metrics,
        config=config,
        growth_stats=grown.stats,
        square_stats=square_stats,
        dithering_stats=dithering_stats,
        connectivity_stats=connectivity_stats,
        version=settings.export_version,
    )
