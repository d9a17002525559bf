"""Tests for square completion and connectivity adjustment."""

import pytest

from flux_worldgen.core.ecosystems import Ecosystem
from flux_worldgen.core.topology import (
    adjust_connectivity,
    complete_squares,
    find_link_candidate,
    used_directions,
)
from flux_worldgen.core.pathfinding import PathfindingConstraints
from flux_worldgen.core.world_graph import Direction


class TestSquareCompletion:
    """Test closing crossed diagonals."""

    def test_crossed_cell_gets_horizontal_sides(self, make_graph):
        # 0=(0,0) 1=(1,0) 2=(0,1) 3=(1,1)
        graph = make_graph([(0, 0), (1, 0), (0, 1), (1, 1)], [(0, 3), (1, 2)])
        result, stats = complete_squares(graph)

        assert stats.crossings_found == 1
        assert stats.edges_added == 2
        assert result.has_edge(0, 1)
        assert result.has_edge(2, 3)
        assert not result.has_edge(0, 2)
        assert len(graph.edges) == 2

    def test_single_diagonal_untouched(self, make_graph):
        graph = make_graph([(0, 0), (1, 0), (0, 1), (1, 1)], [(0, 3)])
        result, stats = complete_squares(graph)
        assert stats.crossings_found == 0
        assert len(result.edges) == 1

    def test_existing_side_not_duplicated(self, make_graph):
        graph = make_graph([(0, 0), (1, 0), (0, 1), (1, 1)], [(0, 3), (1, 2), (0, 1)])
        result, stats = complete_squares(graph)
        assert stats.edges_added == 1
        assert len(result.edges) == 4

    def test_angles_stay_quantized(self, default_world):
        assert all(edge.angle % 45 == 0 for edge in default_world.graph.edges)


class TestConnectivityAdjustment:
    """Test topping up connections."""

    def test_row_links_neighbours_only(self, make_graph):
        graph = make_graph([(x, 0) for x in range(5)], origin=False)
        result, stats = adjust_connectivity(graph, radius=2)

        assert len(result.edges) == 4
        for edge in result.edges:
            assert abs(edge.from_vertex - edge.to_vertex) == 1
        summary = stats.ecosystems["steppe"]
        assert summary.edges_added == 4
        assert summary.average_after == pytest.approx(1.6)
        assert summary.exhausted == 5
        assert stats.components == 1

    def test_existing_edges_kept(self, make_graph):
        graph = make_graph([(0, 0), (1, 0), (1, 1)], [(0, 1)])
        result, _ = adjust_connectivity(graph)
        assert result.has_edge(0, 1)
        assert len(result.edges) >= len(graph.edges)
        assert len(graph.edges) == 1

    def test_mountain_prefers_vertical(self, make_graph):
        cells = [(1, 1, Ecosystem.MOUNTAIN), (1, 0, Ecosystem.MOUNTAIN), (2, 1, Ecosystem.MOUNTAIN)]
        result, _ = adjust_connectivity(make_graph(cells, origin=False))
        first = result.edges[0]
        assert {first.from_vertex, first.to_vertex} == {0, 1}

    def test_steppe_prefers_horizontal(self, make_graph):
        cells = [(1, 1), (1, 0), (2, 1)]
        result, _ = adjust_connectivity(make_graph(cells, origin=False))
        first = result.edges[0]
        assert {first.from_vertex, first.to_vertex} == {0, 2}

    def test_gap_bridged_within_radius(self, make_graph):
        graph = make_graph([(0, 0), (2, 0)], origin=False)
        linked, _ = adjust_connectivity(graph, radius=2)
        assert linked.has_edge(0, 1)
        assert linked.edges[0].angle == 0

        unlinked, stats = adjust_connectivity(graph, radius=1)
        assert len(unlinked.edges) == 0
        assert stats.components == 2

    def test_target_met_stops(self, make_graph):
        graph = make_graph([(0, 0), (1, 0)], [(0, 1)], origin=False)
        result, stats = adjust_connectivity(graph, targets={Ecosystem.STEPPE: 1.0})
        assert len(result.edges) == 1
        assert stats.edges_added == 0

    def test_candidate_respects_used_direction(self, make_graph):
        graph = make_graph([(0, 0), (1, 0), (2, 0)], [(0, 1)], origin=False)
        assert used_directions(graph, 0) == {Direction.EAST}
        constraints = PathfindingConstraints(max_x=3, max_y=1, occupied=frozenset(graph.occupied_cells()))
        assert find_link_candidate(graph, 0, 2, constraints) is None
        assert find_link_candidate(graph, 1, 2, constraints) == 2

    def test_generated_world_has_unique_exit_directions(self, default_world):
        graph = default_world.graph
        for handle in range(len(graph)):
            assert len(used_directions(graph, handle)) == graph.degree(handle)

    def test_statistics_cover_present_ecosystems(self, default_world):
        present = {v.ecosystem.value for v in default_world.graph.vertices}
        assert set(default_world.connectivity_stats.ecosystems) == present
