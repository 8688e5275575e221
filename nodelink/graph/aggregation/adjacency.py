"""Aggregation graph that keeps a neighbor list per cut node.

Merging patches neighbor lists in place. Splitting re-derives the exposed
children's neighbors from the immutable base edge table instead of trying
to undo earlier patches, so any interleaving of aggregate/expand calls is
supported.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Set

from nodelink.graph.aggregation.cut import CutGraph
from nodelink.graph.aggregation.models import Aggregate
from nodelink.graph.base import BaseGraph

logger = logging.getLogger(__name__)


class AggNode(Aggregate[int]):
    """Aggregate over base vertex indices with an ordered, duplicate-free neighbor list."""

    def __init__(self, node_id: int):
        super().__init__(node_id)
        self.neighbors: List["AggNode"] = []

    def has_neighbor(self, other: "AggNode") -> bool:
        return any(n is other for n in self.neighbors)

    def add_neighbor(self, other: "AggNode") -> None:
        if other is not self and not self.has_neighbor(other):
            self.neighbors.append(other)

    def remove_neighbor(self, other: "AggNode") -> None:
        self.neighbors = [n for n in self.neighbors if n is not other]


class AdjacencyAggGraph(CutGraph[AggNode]):
    """Cut over a base graph with neighbor relations derived from base edges."""

    def __init__(self, base: BaseGraph):
        super().__init__(base)
        if not base.is_directed:
            base.expand_undirected()
        self._leaves: List[AggNode] = []
        self._edge_table: Dict[int, List[int]] = {}
        self._edge_sets: Dict[int, Set[int]] = {}
        self._adjacent: Dict[int, Set[int]] = {}
        self._edge_rows = 0
        self._build_base_hierarchy()

    def _build_base_hierarchy(self) -> None:
        self._leaves = []
        for index in range(self.base.vertex_count):
            leaf = AggNode(self._next_id())
            leaf.add_item(index)
            self._leaves.append(leaf)

        self._edge_table = {}
        self._edge_sets = {}
        self._adjacent = {}
        for src, dst in self.base.edges():
            targets = self._edge_sets.setdefault(src, set())
            if dst not in targets:
                targets.add(dst)
                self._edge_table.setdefault(src, []).append(dst)
            if src != dst:
                self._adjacent.setdefault(src, set()).add(dst)
                self._adjacent.setdefault(dst, set()).add(src)
        self._edge_rows = self.base.edge_count
        self._reset_leaves()

    def _reset_leaves(self) -> None:
        self._cut = list(self._leaves)
        for leaf in self._leaves:
            leaf.neighbors = []
        for leaf in self._leaves:
            vertex = leaf.item(0)
            for target in self._edge_table.get(vertex, []):
                other = self._leaves[target]
                leaf.add_neighbor(other)
                other.add_neighbor(leaf)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def connected(self, src: int, dst: int) -> bool:
        """True if the base graph has an edge ``src -> dst``; ignores the cut."""
        return dst in self._edge_sets.get(src, ())

    def nodes_connected(self, a: AggNode, b: AggNode) -> bool:
        """True if any base edge leads from a member of ``a`` to a member of ``b``."""
        targets = set(b.all_items())
        return any(self._edge_sets.get(item, set()) & targets for item in a.all_items())

    def neighbors(self, node: AggNode) -> List[AggNode]:
        return list(node.neighbors)

    def base_neighbors(self, vertex: int) -> List[int]:
        return list(self._edge_table.get(vertex, []))

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def aggregate(self, nodes: Sequence[AggNode]) -> AggNode:
        """Merge cut nodes under a new parent appended to the end of the cut."""
        self._guard_mutation()
        merged = self._validate_merge(nodes)
        parent = self._merge(merged)
        merged_ids = {id(node) for node in merged}
        self._cut = [node for node in self._cut if id(node) not in merged_ids]
        self._cut.append(parent)
        self._fire_aggregation(merged, [parent])
        return parent

    def aggregate_range(self, start: int, length: int) -> AggNode:
        """Merge ``length`` consecutive cut nodes; the parent takes their place."""
        self._guard_mutation()
        if length < 2 or start < 0 or start + length > len(self._cut):
            raise ValueError(
                f"Cannot aggregate range start={start} length={length} of a cut with {len(self._cut)} nodes"
            )
        merged = self._cut[start:start + length]
        parent = self._merge(merged)
        self._cut[start:start + length] = [parent]
        self._fire_aggregation(merged, [parent])
        return parent

    def _validate_merge(self, nodes: Sequence[AggNode]) -> List[AggNode]:
        merged = list(nodes)
        if len(merged) < 2:
            raise ValueError(f"Aggregation needs at least two nodes, got {len(merged)}")
        if len({id(node) for node in merged}) != len(merged):
            raise ValueError("Aggregation nodes must be distinct")
        for node in merged:
            if node not in self:
                raise ValueError(f"{node!r} is not part of the current cut")
        return merged

    def _merge(self, merged: List[AggNode]) -> AggNode:
        parent = AggNode(self._next_id())
        merged_ids = {id(node) for node in merged}
        for node in merged:
            parent.add_aggregate(node)
        for node in merged:
            for neighbor in node.neighbors:
                if id(neighbor) in merged_ids:
                    continue
                neighbor.remove_neighbor(node)
                parent.add_neighbor(neighbor)
                neighbor.add_neighbor(parent)
        logger.debug(
            "aggregate: #%d <- %s (%d neighbors)",
            parent.id, [node.id for node in merged], len(parent.neighbors),
        )
        return parent

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    def expand(self, node: AggNode) -> int:
        """Replace ``node`` with its children in place.

        Returns the number of children, 1 for a leaf, 0 if the node is not
        in the cut.
        """
        if node.is_leaf:
            return 1
        index = self.index_of(node)
        if index < 0:
            return 0
        return self._expand(index)

    def expand_at(self, index: int) -> int:
        if index < 0 or index >= len(self._cut):
            return 0
        return self._expand(index)

    def _expand(self, index: int) -> int:
        node = self._cut[index]
        if node.is_leaf:
            return 1
        self._guard_mutation()
        children = list(node.children)
        self._cut[index:index + 1] = children
        self._rebuild_neighbors(node, children)
        logger.debug("expand: #%d -> %s", node.id, [child.id for child in children])
        self._fire_aggregation([node], children)
        return len(children)

    def _rebuild_neighbors(self, parent: AggNode, children: List[AggNode]) -> None:
        member_sets = {id(other): set(other.all_items()) for other in self._cut}

        for child in children:
            child.neighbors = []
        for child in children:
            reachable: Set[int] = set()
            for item in member_sets[id(child)]:
                reachable |= self._adjacent.get(item, set())
            if not reachable:
                continue
            for other in self._cut:
                if other is child:
                    continue
                if reachable & member_sets[id(other)]:
                    child.add_neighbor(other)
                    other.add_neighbor(child)

        # Repoint stale references to the expanded parent. First child found wins.
        child_ids = {id(child) for child in children}
        for other in self._cut:
            if id(other) in child_ids or not other.has_neighbor(parent):
                continue
            other.remove_neighbor(parent)
            reachable = set()
            for item in member_sets[id(other)]:
                reachable |= self._adjacent.get(item, set())
            for child in children:
                if reachable & member_sets[id(child)]:
                    other.add_neighbor(child)
                    child.add_neighbor(other)
                    break

    def expand_all(self) -> None:
        """Return to the all-leaves cut, discarding every merge."""
        self._guard_mutation()
        before = list(self._cut)
        if self.base.vertex_count != len(self._leaves) or self.base.edge_count != self._edge_rows:
            if not self.base.is_directed:
                self.base.expand_undirected()
            self._build_base_hierarchy()
        else:
            self._reset_leaves()
        if len(before) != len(self._cut) or any(a is not b for a, b in zip(before, self._cut)):
            self._fire_aggregation(before, self._cut)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def check_integrity(self) -> List[str]:
        """Report neighbor references that point outside the cut. Never raises."""
        diagnostics: List[str] = []
        cut_ids = {id(node) for node in self._cut}
        for node in self._cut:
            for neighbor in node.neighbors:
                if id(neighbor) not in cut_ids:
                    message = (
                        f"neighbor list not updated for node #{node.id}: "
                        f"#{neighbor.id} is not in the cut"
                    )
                    logger.warning("INTEGRITY: %s", message)
                    diagnostics.append(message)
        return diagnostics

    def clear(self) -> None:
        self._guard_mutation()
        self.base.clear()
        self._cut = []
        self._leaves = []
        self._edge_table = {}
        self._edge_sets = {}
        self._adjacent = {}
        self._edge_rows = 0
