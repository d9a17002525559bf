"""Tests for spatial metrics, bands and configuration."""

import pytest

from flux_worldgen.config import WorldGenerationConfig
from flux_worldgen.core.ecosystems import (
    ECOSYSTEM_PROGRESSION,
    Ecosystem,
    adjacent_ecosystems,
    parse_ecosystem,
)
from flux_worldgen.core.spatial import (
    calculate_spatial_metrics,
    define_ecosystem_bands,
    ecosystem_for_position,
    find_band_index,
)
from flux_worldgen.errors import ConfigurationError


class TestSpatialMetrics:
    """Test grid dimensions."""

    def test_default_grid(self):
        metrics = calculate_spatial_metrics(WorldGenerationConfig())
        assert metrics.grid_width == 47  # floor((14500 - 400) / 300)
        assert metrics.grid_height == 28  # floor((9000 - 400) / 300)
        assert metrics.center_row == 14

    def test_grid_to_world(self):
        metrics = calculate_spatial_metrics(WorldGenerationConfig())
        assert metrics.grid_to_world(0, 0) == (200.0, 200.0)
        assert metrics.grid_to_world(3, 2) == (1100.0, 800.0)
        assert metrics.world_to_grid(1100.0, 800.0) == (3, 2)

    def test_tiny_world_has_empty_grid(self):
        metrics = calculate_spatial_metrics(WorldGenerationConfig(world_width_km=0.3, world_height_km=0.3))
        assert metrics.grid_width == 0
        assert metrics.grid_height == 0
        assert metrics.cell_count == 0


class TestEcosystemBands:
    """Test the west-to-east band partition."""

    @pytest.fixture
    def bands(self):
        return define_ecosystem_bands(calculate_spatial_metrics(WorldGenerationConfig()))

    def test_five_ordered_bands(self, bands):
        assert [b.ecosystem for b in bands] == ECOSYSTEM_PROGRESSION
        assert len(bands) == 5

    def test_bands_are_contiguous(self, bands):
        assert bands[0].start_x == 0
        assert bands[-1].end_x == pytest.approx(14500)
        for west, east in zip(bands, bands[1:]):
            assert west.end_x == pytest.approx(east.start_x)
            assert west.end_col == east.start_col

    def test_pure_zone_centered(self, bands):
        for band in bands:
            pure = band.pure_zone_end - band.pure_zone_start
            assert pure == pytest.approx(band.width * 0.382)
            assert band.pure_zone_start - band.start_x == pytest.approx(band.end_x - band.pure_zone_end)

    def test_columns_cover_grid(self, bands):
        assert bands[0].start_col == 0
        assert bands[-1].end_col == 47

    def test_find_band_index(self, bands):
        assert find_band_index(0, bands) == 0
        assert find_band_index(bands[1].start_x, bands) == 1
        assert find_band_index(20000, bands) == 4
        assert find_band_index(-5, bands) == 0
        assert find_band_index(100, []) is None

    def test_ecosystem_for_position(self, bands):
        assert ecosystem_for_position(100, bands) is Ecosystem.STEPPE
        centre = (bands[3].start_x + bands[3].end_x) / 2
        assert ecosystem_for_position(centre, bands) is Ecosystem.MOUNTAIN


class TestEcosystems:
    """Test ecosystem taxonomy helpers."""

    def test_urn_round_trip(self):
        for ecosystem in Ecosystem:
            assert Ecosystem.from_urn(ecosystem.urn) is ecosystem

    def test_parse_ecosystem(self):
        assert parse_ecosystem("flux:eco:marsh:tropical") is Ecosystem.MARSH
        assert parse_ecosystem("forest") is Ecosystem.FOREST
        assert parse_ecosystem("flux:eco:tundra:polar") is None

    def test_unknown_urn(self):
        with pytest.raises(ValueError):
            Ecosystem.from_urn("steppe")
        assert parse_ecosystem("flux:eco:steppe") is None
        assert parse_ecosystem("") is None

    def test_adjacent_ecosystems(self):
        assert adjacent_ecosystems(Ecosystem.STEPPE) == [Ecosystem.GRASSLAND]
        assert adjacent_ecosystems(Ecosystem.JUNGLE) == [Ecosystem.MOUNTAIN, Ecosystem.MARSH]
        assert adjacent_ecosystems(Ecosystem.FOREST) == [Ecosystem.GRASSLAND, Ecosystem.MOUNTAIN]
        assert adjacent_ecosystems(Ecosystem.MARSH) == [Ecosystem.JUNGLE]


class TestWorldGenerationConfig:
    """Test validation and serialization."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"branching_factor": 1.5},
            {"dithering_strength": -0.1},
            {"pure_ratio": 2.0},
            {"growth_strategy": "spiral"},
            {"direction_set": "diagonal"},
            {"weather_mode": "stormy"},
            {"place_spacing": 0},
            {"min_vertices": 100, "max_vertices": 10},
            {"connectivity_radius": 0},
        ],
    )
    def test_invalid_values_raise(self, overrides):
        with pytest.raises(ConfigurationError):
            WorldGenerationConfig(**overrides).validate()

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            WorldGenerationConfig(branching_factor=3).validate()

    def test_dict_round_trip(self):
        config = WorldGenerationConfig(seed=5, growth_strategy="discharge")
        data = config.to_dict()
        data["unknown_key"] = "ignored"
        assert WorldGenerationConfig.from_dict(data) == config

    def test_effective_max_vertices(self):
        assert WorldGenerationConfig(min_vertices=100).effective_max_vertices == 300
        assert WorldGenerationConfig(min_vertices=100, max_vertices=120).effective_max_vertices == 120
