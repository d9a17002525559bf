"""Shared fixtures."""

import pytest

from flux_worldgen.config import WorldGenerationConfig
from flux_worldgen.core.ecosystems import Ecosystem
from flux_worldgen.core.generator import generate_world
from flux_worldgen.core.world_graph import ORIGIN_VERTEX_ID, WorldGraph, WorldVertex

SPACING = 300.0
MARGIN = 200.0


def _vertex(grid_x, grid_y, ecosystem=Ecosystem.STEPPE, is_origin=False, x=None, y=None):
    return WorldVertex(
        id=ORIGIN_VERTEX_ID if is_origin else f"v{grid_x}-{grid_y}",
        x=MARGIN + grid_x * SPACING if x is None else x,
        y=MARGIN + grid_y * SPACING if y is None else y,
        grid_x=grid_x,
        grid_y=grid_y,
        ecosystem=ecosystem,
        is_origin=is_origin,
    )


@pytest.fixture
def make_vertex():
    """Factory for vertices on the default 300 m grid."""
    return _vertex


@pytest.fixture
def make_graph():
    """
    Factory building a graph from cells and links.

    ``cells`` is a list of (grid_x, grid_y) or (grid_x, grid_y, ecosystem);
    the first cell is the origin unless ``origin=False``. ``links`` are pairs
    of indices into ``cells``.
    """

    def build(cells, links=(), origin=True):
        graph = WorldGraph()
        for index, cell in enumerate(cells):
            ecosystem = cell[2] if len(cell) > 2 else Ecosystem.STEPPE
            graph.add_vertex(_vertex(cell[0], cell[1], ecosystem, is_origin=origin and index == 0))
        for a, b in links:
            graph.add_edge(a, b)
        return graph

    return build


@pytest.fixture(scope="session")
def default_world():
    """Default-sized flow world for seed 12345."""
    return generate_world(WorldGenerationConfig(seed=12345))


@pytest.fixture(scope="session")
def small_config():
    """A 20 x 12 grid."""
    return WorldGenerationConfig(world_width_km=6.4, world_height_km=4.0, seed=777)


@pytest.fixture(scope="session")
def discharge_world():
    return generate_world(
        WorldGenerationConfig(
            world_width_km=6.4,
            world_height_km=4.0,
            seed=4242,
            growth_strategy="discharge",
            min_vertices=60,
            max_vertices=150,
        )
    )
