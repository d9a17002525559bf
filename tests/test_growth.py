"""Tests for the flow and discharge growth strategies."""

import pytest

from flux_worldgen.config import WorldGenerationConfig
from flux_worldgen.core.alea_prng import AleaPRNG
from flux_worldgen.core.flow_growth import (
    FlowGrowthStrategy,
    branch_count,
    select_weighted_moves,
    weighted_moves,
)
from flux_worldgen.core.generator import get_growth_strategy
from flux_worldgen.core.growth import DischargeGrowthStrategy
from flux_worldgen.core.spatial import (
    calculate_spatial_metrics,
    define_ecosystem_bands,
    ecosystem_for_position,
)
from flux_worldgen.core.world_graph import Direction


def grow(strategy, config, seed="growth"):
    metrics = calculate_spatial_metrics(config)
    bands = define_ecosystem_bands(metrics)
    return strategy.grow(config, metrics, bands, AleaPRNG(seed)), metrics


class TestFlowWeights:
    """Test branch counts and move weighting."""

    @pytest.fixture
    def metrics(self):
        return calculate_spatial_metrics(WorldGenerationConfig())

    def test_branch_count_without_branching(self):
        prng = AleaPRNG("single")
        assert {branch_count(prng, 0.0) for _ in range(200)} == {1}

    def test_branch_count_full_branching(self):
        prng = AleaPRNG("branches")
        counts = [branch_count(prng, 1.0) for _ in range(1000)]
        assert set(counts) == {1, 2, 3}
        assert counts.count(1) > counts.count(2) > counts.count(3)

    def test_east_preferred_in_open_field(self, metrics):
        directions = (Direction.NORTHEAST, Direction.EAST, Direction.SOUTHEAST, Direction.NORTH, Direction.SOUTH)
        moves = dict(weighted_moves(10, 14, directions, metrics, set()))
        assert moves[(1, 0)] == pytest.approx(3.0)
        assert moves[(1, -1)] == pytest.approx(1.0)
        assert moves[(0, -1)] == pytest.approx(0.25)

    def test_boundary_avoidance(self, metrics):
        directions = (Direction.NORTHEAST, Direction.EAST, Direction.SOUTHEAST, Direction.NORTH)
        moves = dict(weighted_moves(10, 1, directions, metrics, set()))
        assert moves[(1, -1)] < moves[(1, 1)]
        assert moves[(1, -1)] == pytest.approx(0.1)

    def test_top_row_excludes_off_grid_moves(self, metrics):
        directions = (Direction.NORTHEAST, Direction.EAST, Direction.SOUTHEAST, Direction.NORTH)
        moves = dict(weighted_moves(10, 0, directions, metrics, set()))
        assert (1, -1) not in moves
        assert (0, -1) not in moves

    def test_east_escalation(self, metrics):
        directions = (Direction.EAST, Direction.NORTH)
        moves = dict(weighted_moves(45, 14, directions, metrics, set()))
        assert moves[(1, 0)] == pytest.approx(6.0)
        assert moves[(0, -1)] == pytest.approx(0.125)

    def test_occupied_cells_excluded(self, metrics):
        moves = dict(weighted_moves(10, 14, (Direction.EAST, Direction.NORTHEAST), metrics, {(11, 14)}))
        assert list(moves) == [(1, -1)]

    def test_select_without_replacement(self):
        moves = [((1, 0), 3.0), ((1, -1), 1.0), ((1, 1), 1.0)]
        selected = select_weighted_moves(moves, 5, AleaPRNG("pick"))
        assert sorted(selected) == sorted(m for m, _ in moves)


class TestFlowGrowth:
    """Test the eastward flow engine."""

    def test_origin_western_centre(self):
        result, metrics = grow(FlowGrowthStrategy(), WorldGenerationConfig())
        origin = result.graph.vertices[result.graph.origin]
        assert (origin.grid_x, origin.grid_y) == (0, metrics.center_row)
        assert origin.id == "origin"

    def test_tree_is_connected(self):
        result, _ = grow(FlowGrowthStrategy(), WorldGenerationConfig())
        graph = result.graph
        assert graph.count_components() == 1
        assert len(graph.edges) == len(graph) - 1

    def test_full_direction_angles(self):
        result, _ = grow(FlowGrowthStrategy(), WorldGenerationConfig())
        assert {e.angle for e in result.graph.edges} <= {0, 45, 90, 270, 315}

    def test_reduced_direction_angles(self):
        result, _ = grow(FlowGrowthStrategy(), WorldGenerationConfig(direction_set="reduced"))
        assert {e.angle for e in result.graph.edges} <= {0, 45, 315}

    def test_single_channel_without_branching(self):
        config = WorldGenerationConfig(branching_factor=0.0, direction_set="reduced")
        result, metrics = grow(FlowGrowthStrategy(), config)
        assert len(result.graph) == metrics.grid_width
        assert sorted(v.grid_x for v in result.graph.vertices) == list(range(metrics.grid_width))
        assert result.stats.reached_east
        assert not result.stats.stalled

    def test_ecosystems_follow_bands(self):
        config = WorldGenerationConfig()
        result, metrics = grow(FlowGrowthStrategy(), config)
        bands = define_ecosystem_bands(metrics)
        for vertex in result.graph.vertices:
            assert vertex.ecosystem is ecosystem_for_position(vertex.x, bands)

    def test_deterministic(self):
        first, _ = grow(FlowGrowthStrategy(), WorldGenerationConfig(), seed="same")
        second, _ = grow(FlowGrowthStrategy(), WorldGenerationConfig(), seed="same")
        assert [v.cell for v in first.graph.vertices] == [v.cell for v in second.graph.vertices]

    def test_empty_grid(self):
        result, _ = grow(FlowGrowthStrategy(), WorldGenerationConfig(world_width_km=0.3, world_height_km=0.3))
        assert len(result.graph) == 0
        assert result.stats.stalled


class TestDischargeGrowth:
    """Test the discharge strategy on the place grid."""

    @pytest.fixture
    def config(self, small_config):
        return WorldGenerationConfig(
            world_width_km=small_config.world_width_km,
            world_height_km=small_config.world_height_km,
            growth_strategy="discharge",
            min_vertices=60,
            max_vertices=150,
        )

    def test_connected_and_bounded(self, config):
        result, _ = grow(DischargeGrowthStrategy(), config)
        assert result.graph.count_components() == 1
        assert 60 <= len(result.graph) <= 150
        assert result.stats.vertices == len(result.graph)

    def test_origin_present(self, config):
        result, metrics = grow(DischargeGrowthStrategy(), config)
        origin = result.graph.vertices[result.graph.origin]
        assert (origin.grid_x, origin.grid_y) == (0, metrics.center_row)
        assert sum(v.is_origin for v in result.graph.vertices) == 1

    def test_edges_are_unit_steps(self, config):
        result, _ = grow(DischargeGrowthStrategy(), config)
        for edge in result.graph.edges:
            a = result.graph.vertices[edge.from_vertex]
            b = result.graph.vertices[edge.to_vertex]
            assert max(abs(a.grid_x - b.grid_x), abs(a.grid_y - b.grid_y)) == 1
            assert edge.angle % 45 == 0

    def test_world_coordinates_on_grid(self, config):
        result, metrics = grow(DischargeGrowthStrategy(), config)
        for vertex in result.graph.vertices:
            assert (vertex.x, vertex.y) == metrics.grid_to_world(vertex.grid_x, vertex.grid_y)

    def test_registry(self):
        assert isinstance(get_growth_strategy("flow"), FlowGrowthStrategy)
        assert isinstance(get_growth_strategy("discharge"), DischargeGrowthStrategy)
        with pytest.raises(ValueError):
            get_growth_strategy("spiral")
