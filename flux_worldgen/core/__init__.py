"""
Core world generation functionality.
"""

from .alea_prng import AleaPRNG
from .ecosystems import Ecosystem, ECOLOGICAL_PROFILES, TARGET_CONNECTIONS
from .spatial import EcosystemBand, SpatialMetrics, calculate_spatial_metrics, define_ecosystem_bands
from .world_graph import Direction, FlowDirection, WorldEdge, WorldGraph, WorldVertex
from .pathfinding import GridCoords, PathfindingConstraints, find_grid_path
from .lichtenberg import LichtenbergConfig, LichtenbergFigure, generate_lichtenberg_figure
from .growth import GrowthResult, GrowthStats, GrowthStrategy, DischargeGrowthStrategy
from .flow_growth import FlowGrowthStrategy
from .generator import WorldGenerationResult, generate_world, get_growth_strategy

__all__ = ['AleaPRNG', 'Ecosystem', 'ECOLOGICAL_PROFILES', 'TARGET_CONNECTIONS',
           'EcosystemBand', 'SpatialMetrics', 'calculate_spatial_metrics', 'define_ecosystem_bands',
           'Direction', 'FlowDirection', 'WorldEdge', 'WorldGraph', 'WorldVertex',
           'GridCoords', 'PathfindingConstraints', 'find_grid_path',
           'LichtenbergConfig', 'LichtenbergFigure', 'generate_lichtenberg_figure',
           'GrowthResult', 'GrowthStats', 'GrowthStrategy', 'DischargeGrowthStrategy',
           'FlowGrowthStrategy', 'WorldGenerationResult', 'generate_world', 'get_growth_strategy']
