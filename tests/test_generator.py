"""Tests for the end-to-end generation pipeline."""

import pytest

from flux_worldgen.config import WorldGenerationConfig
from flux_worldgen.core.addresses import ORIGIN_PLACE_ADDRESS, generate_place_address
from flux_worldgen.core.ecosystems import Ecosystem, adjacent_ecosystems
from flux_worldgen.core.generator import generate_world
from flux_worldgen.core.spatial import find_band_index
from flux_worldgen.errors import ConfigurationError


class TestDefaultWorld:
    """Checks on the default 14.5 x 9 km world."""

    def test_grid_and_bands(self, default_world):
        assert default_world.metrics.grid_width == 47
        assert default_world.metrics.grid_height == 28
        assert [b.ecosystem for b in default_world.bands] == [
            Ecosystem.STEPPE,
            Ecosystem.GRASSLAND,
            Ecosystem.FOREST,
            Ecosystem.MOUNTAIN,
            Ecosystem.JUNGLE,
        ]

    def test_origin(self, default_world):
        origin = default_world.origin
        assert (origin.grid_x, origin.grid_y) == (0, 14)
        assert origin.address == ORIGIN_PLACE_ADDRESS
        assert sum(v.is_origin for v in default_world.vertices) == 1

    def test_connected(self, default_world):
        assert default_world.graph.count_components() == 1
        assert default_world.connectivity_stats.components == 1

    def test_angles_quantized(self, default_world):
        assert all(edge.angle % 45 == 0 for edge in default_world.edges)

    def test_boundary_rows_sparse(self, default_world):
        last_row = default_world.metrics.grid_height - 1
        on_edge = sum(v.grid_y in (0, last_row) for v in default_world.vertices)
        assert on_edge / len(default_world.vertices) < 0.3

    def test_post_processing_only_adds_edges(self, default_world):
        assert default_world.growth_stats.edges <= len(default_world.edges)

    def test_addresses_assigned(self, default_world):
        addresses = [v.address for v in default_world.vertices]
        assert all(a == generate_place_address(v) for a, v in zip(addresses, default_world.vertices))
        assert len(set(addresses)) == len(addresses)

    def test_ecosystems_near_their_band(self, default_world):
        bands = default_world.bands
        for vertex in default_world.vertices:
            band = bands[find_band_index(vertex.x, bands)]
            assert vertex.ecosystem in {band.ecosystem, *adjacent_ecosystems(band.ecosystem)}

    def test_marsh_on_eastern_column(self, default_world):
        east = default_world.metrics.grid_width - 1
        for vertex in default_world.vertices:
            assert (vertex.ecosystem is Ecosystem.MARSH) == (vertex.grid_x == east)

    def test_summary(self, default_world):
        summary = default_world.summary()
        assert summary["seed"] == 12345
        assert summary["vertices"] == len(default_world.graph)
        assert summary["origin"] == {"grid_x": 0, "grid_y": 14}
        assert sum(summary["ecosystems"].values()) == summary["vertices"]


class TestGenerationOptions:
    """Test seeds, validation and degenerate sizes."""

    def test_deterministic(self, small_config):
        first = generate_world(small_config)
        second = generate_world(small_config)
        assert [v.address for v in first.vertices] == [v.address for v in second.vertices]
        assert [e.id for e in first.edges] == [e.id for e in second.edges]

    def test_seed_changes_world(self, small_config):
        first = generate_world(small_config)
        second = generate_world(small_config.with_seed(778))
        assert {v.cell for v in first.vertices} != {v.cell for v in second.vertices}

    def test_seed_resolved_when_missing(self):
        world = generate_world(WorldGenerationConfig(world_width_km=3.0, world_height_km=3.0))
        assert isinstance(world.config.seed, int)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"branching_factor": 1.5},
            {"dithering_strength": -0.1},
            {"growth_strategy": "spiral"},
            {"world_width_km": -1.0},
            {"place_spacing": 0.0},
        ],
    )
    def test_invalid_config(self, overrides):
        with pytest.raises(ConfigurationError):
            generate_world(WorldGenerationConfig(seed=1, **overrides))

    def test_world_too_small_for_a_place(self):
        world = generate_world(WorldGenerationConfig(world_width_km=0.3, world_height_km=0.3, seed=1))
        assert len(world.graph) == 0
        assert world.origin is None
        assert world.growth_stats.stalled


class TestDischargeWorld:
    """Test the pipeline with the discharge strategy."""

    def test_connected(self, discharge_world):
        assert discharge_world.graph.count_components() == 1

    def test_single_origin(self, discharge_world):
        assert sum(v.is_origin for v in discharge_world.vertices) == 1
        assert discharge_world.origin.address == ORIGIN_PLACE_ADDRESS

    def test_growth_strategy_recorded(self, discharge_world):
        assert discharge_world.growth_stats.strategy == "discharge"
        assert discharge_world.growth_stats.vertices >= 60

    @pytest.mark.parametrize("size", [10, 40])
    def test_marsh_stays_beside_last_band(self, size):
        world = generate_world(
            WorldGenerationConfig(
                world_width_km=6.4,
                world_height_km=4.0,
                seed=5,
                growth_strategy="discharge",
                min_vertices=size,
                max_vertices=size,
            )
        )
        bands = world.bands
        east = world.metrics.grid_width - 1
        for vertex in world.vertices:
            band = bands[find_band_index(vertex.x, bands)]
            assert vertex.ecosystem in {band.ecosystem, *adjacent_ecosystems(band.ecosystem)}
            if vertex.ecosystem is Ecosystem.MARSH:
                assert vertex.grid_x == east
                assert band.ecosystem is Ecosystem.JUNGLE
