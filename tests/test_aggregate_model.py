"""Tests for nodelink/graph/aggregation/models.py - the persistent aggregate tree."""
from __future__ import annotations

import pytest

from nodelink.graph.aggregation.errors import InvalidAggregateError
from nodelink.graph.aggregation.models import Aggregate


# Fixture: small tree
#
#          6
#         / \
#        4   5
#       / \   \
#      0   1   2
#
@pytest.fixture
def tree():
    leaves = []
    for row in range(3):
        leaf = Aggregate(row)
        leaf.add_item(row)
        leaves.append(leaf)
    left = Aggregate(4)
    left.add_aggregate(leaves[0])
    left.add_aggregate(leaves[1])
    right = Aggregate(5)
    right.add_aggregate(leaves[2])
    root = Aggregate(6)
    root.add_aggregate(left)
    root.add_aggregate(right)
    return {"leaves": leaves, "left": left, "right": right, "root": root}


class TestConstruction:

    @pytest.mark.unit
    def test_leaf_holds_items(self):
        leaf = Aggregate(0)
        leaf.add_item(7)
        assert leaf.is_leaf
        assert leaf.item_count == 1
        assert leaf.item(0) == 7
        assert leaf.items == (7,)

    @pytest.mark.unit
    def test_items_on_internal_node_rejected(self, tree):
        with pytest.raises(InvalidAggregateError):
            tree["root"].add_item(9)

    @pytest.mark.unit
    def test_children_on_leaf_rejected(self, tree):
        with pytest.raises(InvalidAggregateError):
            tree["leaves"][0].add_aggregate(Aggregate(10))

    @pytest.mark.unit
    def test_self_containment_rejected(self):
        node = Aggregate(1)
        with pytest.raises(InvalidAggregateError):
            node.add_aggregate(node)

    @pytest.mark.unit
    def test_ancestor_as_child_rejected(self, tree):
        with pytest.raises(InvalidAggregateError):
            tree["left"].add_aggregate(tree["root"])

    @pytest.mark.unit
    def test_invalid_aggregate_is_value_error(self):
        assert issubclass(InvalidAggregateError, ValueError)


class TestTreeQueries:

    @pytest.mark.unit
    def test_all_items_depth_first(self, tree):
        assert tree["root"].all_items() == [0, 1, 2]
        assert tree["left"].all_items() == [0, 1]

    @pytest.mark.unit
    def test_first_item(self, tree):
        assert tree["right"].first_item() == 2
        assert tree["root"].first_item() == 0
        assert Aggregate(99).first_item() is None

    @pytest.mark.unit
    def test_leaves(self, tree):
        assert tree["root"].leaves() == tree["leaves"]
        assert tree["leaves"][1].leaves() == [tree["leaves"][1]]

    @pytest.mark.unit
    def test_contains_item_searches_subtree(self, tree):
        assert tree["root"].contains_item(2)
        assert not tree["left"].contains_item(2)

    @pytest.mark.unit
    def test_contains_aggregate_is_direct_only(self, tree):
        assert tree["root"].contains_aggregate(tree["left"])
        assert not tree["root"].contains_aggregate(tree["leaves"][0])

    @pytest.mark.unit
    def test_covers_self_and_descendants(self, tree):
        root = tree["root"]
        assert root.covers(root)
        assert root.covers(tree["leaves"][2])
        assert not tree["left"].covers(tree["leaves"][2])

    @pytest.mark.unit
    def test_children_accessors(self, tree):
        root = tree["root"]
        assert root.aggregate_count == 2
        assert root.aggregate(1) is tree["right"]
        assert root.children == (tree["left"], tree["right"])

    @pytest.mark.unit
    def test_descendants_preorder(self, tree):
        ids = [node.id for node in tree["root"].descendants()]
        assert ids == [4, 0, 1, 5, 2]
