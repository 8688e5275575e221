"""Tests for nodelink/visualization/{layout,view}.py - positions, outlines and view data."""
from __future__ import annotations

import numpy as np
import pytest

from nodelink.config import X_COLUMN, Y_COLUMN
from nodelink.graph.aggregation import (
    AdjacencyAggGraph,
    EdgeAggregatingGraph,
    MidpointDistance,
)
from nodelink.graph.base import REAL
from nodelink.visualization import (
    AggregatedView,
    build_view,
    cluster_outline,
    random_layout,
)
from tests.helpers.graphs import make_graph, place


# Scenario positions (y-up)
#
#           0 (0, 10)
#          / \
#  (-5, 0) 1---2 (5, 0)
#          \ /
#           3 (0, -10)
#
SCENARIO_COORDS = [(0.0, 10.0), (-5.0, 0.0), (5.0, 0.0), (0.0, -10.0)]


@pytest.fixture
def placed_scenario(scenario_base):
    return place(scenario_base, SCENARIO_COORDS)


def link_pairs(data):
    return {frozenset((link.source_id, link.target_id)) for link in data.links}


# ==============================================================================
# Layout
# ==============================================================================

class TestRandomLayout:

    @pytest.mark.unit
    def test_same_seed_same_positions(self):
        first = random_layout(make_graph(20, []), 100, 50, seed=7)
        second = random_layout(make_graph(20, []), 100, 50, seed=7)
        assert np.array_equal(first, second)

    @pytest.mark.unit
    def test_positions_on_integer_grid_inside_canvas(self):
        base = make_graph(50, [])
        coords = random_layout(base, 30, 10, seed=3)
        assert coords.shape == (50, 2)
        assert ((coords[:, 0] >= 0) & (coords[:, 0] < 30)).all()
        assert ((coords[:, 1] >= 0) & (coords[:, 1] < 10)).all()
        assert np.array_equal(coords, np.round(coords))

    @pytest.mark.unit
    def test_writes_real_position_columns(self):
        base = make_graph(3, [])
        coords = random_layout(base, 10, 10, seed=1)
        assert base.column_kind(X_COLUMN) == REAL
        assert base.real_value(Y_COLUMN, 2) == coords[2, 1]

    @pytest.mark.unit
    def test_relayout_reuses_columns(self, line_base):
        random_layout(line_base, 10, 10, seed=1)
        random_layout(line_base, 10, 10, seed=2)
        assert line_base.columns.count(X_COLUMN) == 1


class TestClusterOutline:

    @pytest.mark.unit
    def test_leaf_has_no_outline(self, line_base):
        graph = AdjacencyAggGraph(line_base)
        assert cluster_outline(line_base, graph.node(0), 1.0) is None

    @pytest.mark.unit
    def test_two_members_give_compass_hull(self):
        # Compass points around (0, 0) and (10, 0) with radius 1
        base = place(make_graph(2, [(0, 1)]), [(0.0, 0.0), (10.0, 0.0)])
        graph = AdjacencyAggGraph(base)
        parent = graph.aggregate([graph.node(0), graph.node(1)])

        outline = cluster_outline(base, parent, 1.0)

        assert outline == [(0.0, -1.0), (10.0, -1.0), (11.0, 0.0), (10.0, 1.0), (0.0, 1.0), (-1.0, 0.0)]

    @pytest.mark.unit
    def test_zero_radius_on_a_line_spans_all_members(self):
        base = place(make_graph(3, []), [(0.0, 0.0), (5.0, 0.0), (10.0, 0.0)])
        graph = AdjacencyAggGraph(base)
        parent = graph.aggregate(graph.nodes)

        assert cluster_outline(base, parent, 0.0) == [(0.0, 0.0), (10.0, 0.0)]

    @pytest.mark.unit
    def test_relayout_bumps_base_revision(self, line_base):
        before = line_base.revision
        random_layout(line_base, 10, 10, seed=1)
        assert line_base.revision > before


# ==============================================================================
# View data
# ==============================================================================

class TestBuildView:

    @pytest.mark.unit
    def test_leaf_level_view(self, placed_scenario):
        data = build_view(AdjacencyAggGraph(placed_scenario), 2.0)
        assert [shape.id for shape in data.clusters] == [0, 1, 2, 3]
        assert all(shape.is_leaf and shape.outline is None for shape in data.clusters)
        assert data.clusters[0].centroid == (0.0, 10.0)
        assert len(data.links) == 5
        assert data.visible_ratio == 1.0

    @pytest.mark.unit
    def test_aggregate_shape_and_links(self, placed_scenario):
        graph = AdjacencyAggGraph(placed_scenario)
        graph.aggregate([graph.node(1), graph.node(2)])

        data = build_view(graph, 2.0)

        parent = data.clusters[-1]
        assert parent.id == 4
        assert parent.members == [1, 2]
        assert parent.centroid == (0.0, 0.0)
        assert not parent.is_leaf
        assert len(parent.outline) >= 4
        assert [(link.source_id, link.target_id) for link in data.links] == [(0, 4), (3, 4)]
        assert data.visible_ratio == 0.75

    @pytest.mark.unit
    def test_edge_aggregating_engine_links(self, placed_scenario):
        graph = EdgeAggregatingGraph(placed_scenario)
        graph.aggregate([graph.node(1), graph.node(2)])

        data = build_view(graph, 2.0)

        assert link_pairs(data) == {frozenset((0, 4)), frozenset((3, 4))}

    @pytest.mark.unit
    def test_to_dict_is_plain_data(self, placed_scenario):
        data = build_view(AdjacencyAggGraph(placed_scenario), 2.0).to_dict()
        assert set(data) == {"clusters", "links", "total_nodes", "node_radius", "visible_ratio"}
        assert data["clusters"][1]["members"] == [1]
        assert data["links"][0] == {"source_id": 0, "target_id": 1}


class TestAggregatedView:

    @pytest.fixture
    def view(self, placed_scenario):
        graph = AdjacencyAggGraph(placed_scenario)
        view = AggregatedView(graph, MidpointDistance(placed_scenario), radius=2.0)
        yield view
        view.close()

    @pytest.mark.unit
    def test_rebuilds_on_aggregation(self, view):
        graph = view.graph
        parent = view.aggregate([graph.node(1), graph.node(2)])

        assert view.rebuilds == 1
        assert len(view.data.clusters) == 3
        assert view.shape_for(parent).members == [1, 2]

    @pytest.mark.unit
    def test_clustering_rebuilds_once(self, view):
        result = view.cluster()
        assert result.final_cut_size == 1
        assert view.rebuilds == 1
        assert len(view.data.clusters) == 1

    @pytest.mark.unit
    def test_navigation_forwards_to_graph(self, view):
        view.cluster()
        assert view.set_visible_item_ratio(1.0) == 4
        assert view.roll_up(2) == 2
        assert view.drill_down(1) == 1
        assert len(view.data.clusters) == view.graph.cut_size == 3

    @pytest.mark.unit
    def test_expand_and_missing_shape(self, view):
        graph = view.graph
        parent = view.aggregate([graph.node(0), graph.node(1)])
        assert view.expand(parent) == 2
        assert view.shape_for(parent) is None
        assert view.rebuilds == 2

    @pytest.mark.unit
    def test_close_unsubscribes(self, view):
        view.close()
        view.graph.aggregate([view.graph.node(0), view.graph.node(1)])
        assert view.rebuilds == 0
