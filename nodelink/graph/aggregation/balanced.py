"""Aggregation graph whose edges are aggregated alongside its nodes.

Every merge builds one aggregate edge per distinct external endpoint, so the
edge tree mirrors the node tree and splitting only has to hand the child
edges back. The price is that splits must undo merges in exact reverse
order: the engine keeps the stack of live merges and refuses anything else.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from nodelink.graph.aggregation.cut import CutGraph
from nodelink.graph.aggregation.errors import ExpansionOrderError
from nodelink.graph.aggregation.models import Aggregate
from nodelink.graph.base import BaseGraph

logger = logging.getLogger(__name__)


class AggEdge(Aggregate[int]):
    """Leaf edges own base edge rows, aggregate edges own the edges they replaced."""

    def __init__(self, edge_id: int, src: "BalancedNode", dst: "BalancedNode"):
        super().__init__(edge_id)
        self.src = src
        self.dst = dst

    def __repr__(self) -> str:
        return f"AggEdge(#{self.id}, #{self.src.id} -> #{self.dst.id})"


class BalancedNode(Aggregate[int]):
    """Aggregate over base vertex indices with ordered, duplicate-free edge lists."""

    def __init__(self, node_id: int):
        super().__init__(node_id)
        self.out_edges: List[AggEdge] = []
        self.in_edges: List[AggEdge] = []
        # Edges between two merged children; kept for bookkeeping only.
        self.internal_edges: List[AggEdge] = []

    def add_out_edge(self, edge: AggEdge) -> None:
        if not any(e is edge for e in self.out_edges):
            self.out_edges.append(edge)

    def add_in_edge(self, edge: AggEdge) -> None:
        if not any(e is edge for e in self.in_edges):
            self.in_edges.append(edge)

    def remove_out_edge(self, edge: AggEdge) -> None:
        self.out_edges = [e for e in self.out_edges if e is not edge]

    def remove_in_edge(self, edge: AggEdge) -> None:
        self.in_edges = [e for e in self.in_edges if e is not edge]

    @property
    def out_edge_count(self) -> int:
        return len(self.out_edges)

    @property
    def in_edge_count(self) -> int:
        return len(self.in_edges)

    def connecting_edge(self, node: "BalancedNode") -> Optional[AggEdge]:
        for edge in self.out_edges:
            if edge.dst.covers(node):
                return edge
        return None


class EdgeAggregatingGraph(CutGraph[BalancedNode]):
    """Cut over a base graph with first-class aggregate edges.

    ``expand`` must undo ``aggregate`` calls in last-in first-out order.
    """

    def __init__(self, base: Optional[BaseGraph] = None):
        super().__init__(base if base is not None else BaseGraph())
        if not self.base.is_directed:
            self.base.expand_undirected()
        self._edge_ids = 0
        self._leaves: List[BalancedNode] = []
        self._leaf_edges: Dict[Tuple[int, int], AggEdge] = {}
        self._stack: List[BalancedNode] = []
        self._build_base_hierarchy()

    def _next_edge_id(self) -> int:
        edge_id = self._edge_ids
        self._edge_ids += 1
        return edge_id

    def _build_base_hierarchy(self) -> None:
        self._leaf_edges = {}
        self._stack = []
        self._leaves = [self._make_leaf(index) for index in range(self.base.vertex_count)]
        self._cut = list(self._leaves)
        for row, (src, dst) in enumerate(self.base.edges()):
            self._register_edge(src, dst, row)

    def _make_leaf(self, index: int) -> BalancedNode:
        node = BalancedNode(self._next_id())
        node.add_item(index)
        return node

    def _register_edge(self, src: int, dst: int, row: int) -> None:
        key = (src, dst)
        edge = self._leaf_edges.get(key)
        if edge is None:
            edge = AggEdge(self._next_edge_id(), self._leaves[src], self._leaves[dst])
            self._leaf_edges[key] = edge
        edge.add_item(row)
        edge.src.add_out_edge(edge)
        edge.dst.add_in_edge(edge)

    # ------------------------------------------------------------------
    # Base graph passthrough
    # ------------------------------------------------------------------

    def add_vertex(self, **attrs) -> int:
        self._require_flat("add_vertex")
        vertex = self.base.add_vertex(**attrs)
        leaf = self._make_leaf(vertex)
        self._leaves.append(leaf)
        self._cut.append(leaf)
        return vertex

    def add_edge(self, src: int, dst: int) -> int:
        self._require_flat("add_edge")
        row = self.base.add_edge(src, dst)
        self._register_edge(src, dst, row)
        return row

    def expand_undirected(self) -> None:
        self._guard_mutation()
        self.base.expand_undirected()
        self._build_base_hierarchy()

    def clear(self) -> None:
        self._guard_mutation()
        self.base.clear()
        self._cut = []
        self._leaves = []
        self._leaf_edges = {}
        self._stack = []

    def _require_flat(self, operation: str) -> None:
        self._guard_mutation()
        if self._stack:
            raise ExpansionOrderError(f"{operation} requires a fully expanded graph")

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def aggregate(self, nodes: Sequence[BalancedNode]) -> BalancedNode:
        """Merge cut nodes under a new parent appended to the end of the cut."""
        self._guard_mutation()
        merged = self._validate_merge(nodes)
        parent = self._merge(merged)
        merged_ids = {id(node) for node in merged}
        self._cut = [node for node in self._cut if id(node) not in merged_ids]
        self._cut.append(parent)
        self._fire_aggregation(merged, [parent])
        return parent

    def aggregate_range(self, start: int, length: int) -> BalancedNode:
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

    def _validate_merge(self, nodes: Sequence[BalancedNode]) -> List[BalancedNode]:
        merged = list(nodes)
        if len(merged) < 2:
            raise ValueError(f"Aggregation needs at least two nodes, got {len(merged)}")
        if len({id(node) for node in merged}) != len(merged):
            raise ValueError("Aggregation nodes must be distinct")
        for node in merged:
            if node not in self:
                raise ValueError(f"{node!r} is not part of the current cut")
        return merged

    def _merge(self, merged: List[BalancedNode]) -> BalancedNode:
        parent = BalancedNode(self._next_id())
        merged_ids = {id(node) for node in merged}

        # Group by external endpoint, keeping first-seen order.
        out_groups: Dict[int, Tuple[BalancedNode, List[AggEdge]]] = {}
        in_groups: Dict[int, Tuple[BalancedNode, List[AggEdge]]] = {}
        for node in merged:
            parent.add_aggregate(node)
            for edge in node.out_edges:
                if id(edge.dst) in merged_ids:
                    parent.internal_edges.append(edge)
                else:
                    out_groups.setdefault(id(edge.dst), (edge.dst, []))[1].append(edge)
            for edge in node.in_edges:
                if id(edge.src) not in merged_ids:
                    in_groups.setdefault(id(edge.src), (edge.src, []))[1].append(edge)

        for dst, group in out_groups.values():
            edge = self._aggregate_edge(group, parent, dst)
            parent.add_out_edge(edge)
            for sub_edge in group:
                dst.remove_in_edge(sub_edge)
            dst.add_in_edge(edge)

        for src, group in in_groups.values():
            edge = self._aggregate_edge(group, src, parent)
            parent.add_in_edge(edge)
            for sub_edge in group:
                src.remove_out_edge(sub_edge)
            src.add_out_edge(edge)

        self._stack.append(parent)
        logger.debug(
            "aggregate: #%d <- %s (out=%d in=%d internal=%d)",
            parent.id, [node.id for node in merged],
            len(parent.out_edges), len(parent.in_edges), len(parent.internal_edges),
        )
        return parent

    def _aggregate_edge(
        self, group: List[AggEdge], src: BalancedNode, dst: BalancedNode
    ) -> AggEdge:
        edge = AggEdge(self._next_edge_id(), src, dst)
        for sub_edge in group:
            edge.add_aggregate(sub_edge)
        return edge

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    def expand(self, node: BalancedNode) -> int:
        """Undo the most recent live merge.

        Returns the number of children, 1 for a leaf, 0 if the node is not in
        the cut. Raises ``ExpansionOrderError`` for any other aggregate.
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
        self._drop_dead_merges()
        if not self._stack or self._stack[-1] is not node:
            top = f"#{self._stack[-1].id}" if self._stack else "none"
            raise ExpansionOrderError(
                f"Cannot expand #{node.id}: merges must be undone in reverse order (next is {top})"
            )
        self._stack.pop()

        children = list(node.children)
        self._cut[index:index + 1] = children
        self._split_edges(node)
        logger.debug("expand: #%d -> %s", node.id, [child.id for child in children])
        self._fire_aggregation([node], children)
        return len(children)

    def _drop_dead_merges(self) -> None:
        # Culled aggregates leave the cut without being expanded.
        while self._stack and self._stack[-1] not in self:
            self._stack.pop()

    def _split_edges(self, node: BalancedNode) -> None:
        for edge in node.out_edges:
            edge.dst.remove_in_edge(edge)
            for sub_edge in edge.children:
                sub_edge.src.add_out_edge(sub_edge)
                sub_edge.dst.add_in_edge(sub_edge)
        for edge in node.in_edges:
            edge.src.remove_out_edge(edge)
            for sub_edge in edge.children:
                sub_edge.src.add_out_edge(sub_edge)
                sub_edge.dst.add_in_edge(sub_edge)

    def expand_all(self) -> None:
        """Unwind every live merge, most recent first."""
        self._guard_mutation()
        while True:
            self._drop_dead_merges()
            if not self._stack:
                break
            self._expand(self.index_of(self._stack[-1]))

    @property
    def aggregation_depth(self) -> int:
        """Number of merges that can still be undone."""
        return len(self._stack)

    @property
    def next_expansion(self) -> Optional[BalancedNode]:
        """The only aggregate ``expand`` currently accepts, or None."""
        for node in reversed(self._stack):
            if node in self:
                return node
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_connecting_edge(self, a: BalancedNode, b: BalancedNode) -> Optional[AggEdge]:
        """Out-edge of ``a`` whose destination is ``b`` or one of its ancestors."""
        return a.connecting_edge(b)

    def connected(self, a: BalancedNode, b: BalancedNode) -> bool:
        return a.connecting_edge(b) is not None

    def get_edge(self, row: int) -> Optional[AggEdge]:
        """Aggregate edge currently carrying base edge ``row``."""
        src, dst = self.base.edge_endpoints(row)
        src_index = self.map_row_to_agg_node(src)
        dst_index = self.map_row_to_agg_node(dst)
        if src_index < 0 or dst_index < 0:
            logger.warning("get_edge: row=%d from=%d to=%d has a culled endpoint", row, src, dst)
            return None
        edge = self._cut[src_index].connecting_edge(self._cut[dst_index])
        if edge is None:
            logger.warning("get_edge: row=%d from=%d to=%d has no connecting edge", row, src, dst)
        return edge

    def edges(self) -> List[AggEdge]:
        """Every distinct edge incident to the cut, in discovery order."""
        seen = set()
        collected: List[AggEdge] = []
        for node in self._cut:
            for edge in node.out_edges + node.in_edges:
                if id(edge) not in seen:
                    seen.add(id(edge))
                    collected.append(edge)
        return collected

    def cull_empty_nodes(self) -> int:
        """Remove cut nodes without any incident edge. Returns how many were removed."""
        self._guard_mutation()
        kept = [node for node in self._cut if node.in_edges or node.out_edges]
        removed = len(self._cut) - len(kept)
        self._cut = kept
        if removed:
            logger.debug("cull_empty_nodes: removed %d isolated nodes", removed)
        return removed

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def check_integrity(self) -> List[str]:
        """Report edges whose endpoints disagree with their owner or the cut. Never raises."""
        diagnostics: List[str] = []
        cut_ids = {id(node) for node in self._cut}

        def report(message: str) -> None:
            logger.warning("INTEGRITY: %s", message)
            diagnostics.append(message)

        for node in self._cut:
            for edge in node.out_edges:
                if edge.src is not node:
                    report(f"out-edge #{edge.id} of node #{node.id} has source #{edge.src.id}")
                if id(edge.src) not in cut_ids:
                    report(f"out-edge #{edge.id}: source #{edge.src.id} not in current cut")
                if id(edge.dst) not in cut_ids:
                    report(f"out-edge #{edge.id}: destination #{edge.dst.id} not in current cut")
            for edge in node.in_edges:
                if edge.dst is not node:
                    report(f"in-edge #{edge.id} of node #{node.id} has destination #{edge.dst.id}")
                if id(edge.src) not in cut_ids:
                    report(f"in-edge #{edge.id}: source #{edge.src.id} not in current cut")
                if id(edge.dst) not in cut_ids:
                    report(f"in-edge #{edge.id}: destination #{edge.dst.id} not in current cut")
        return diagnostics

    def describe(self) -> str:
        lines = []
        for node in self._cut:
            lines.append(f"#{node.id}: {node.all_items()}")
            for edge in node.out_edges:
                lines.append(f"   -> #{edge.dst.id}: {edge.dst.all_items()}")
        return "\n".join(lines)
