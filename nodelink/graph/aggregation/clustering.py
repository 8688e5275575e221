"""Greedy bottom-up clustering and single-step navigation over a cut."""
from __future__ import annotations

import heapq
import itertools
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

from nodelink.graph.aggregation.adjacency import AdjacencyAggGraph
from nodelink.graph.aggregation.balanced import EdgeAggregatingGraph
from nodelink.graph.aggregation.distance import DistanceFunction
from nodelink.graph.aggregation.models import Aggregate

logger = logging.getLogger(__name__)

AggGraph = Union[AdjacencyAggGraph, EdgeAggregatingGraph]

# (distance, discovery sequence, pair); the sequence keeps equal distances in insertion order
QueueEntry = Tuple[float, int, "NodePair"]


@dataclass(frozen=True)
class NodePair:
    node_a: Aggregate
    node_b: Aggregate
    distance: float

    def references(self, node: Aggregate) -> bool:
        return self.node_a is node or self.node_b is node


@dataclass
class MergeStep:
    """One merge performed by the full clustering run."""

    parent_id: int
    child_ids: Tuple[int, int]
    distance: float


@dataclass
class ClusteringResult:
    steps: List[MergeStep] = field(default_factory=list)
    final_cut_size: int = 0
    cancelled: bool = False
    duration_ms: int = 0

    @property
    def merge_count(self) -> int:
        return len(self.steps)


def _pair_distance(dist: DistanceFunction, a: Aggregate, b: Aggregate) -> float:
    return float(dist.distance(a, b))


def compute_all_pair_distances(graph: AggGraph, dist: DistanceFunction) -> List[QueueEntry]:
    """Heap of every unordered pair of cut nodes, keyed by distance.

    Pairs are discovered row by row in cut order; pairs whose distance is not
    finite are left out.
    """
    nodes = graph.nodes
    counter = itertools.count()
    queue: List[QueueEntry] = []
    for i in range(len(nodes) - 1):
        for j in range(i + 1, len(nodes)):
            distance = _pair_distance(dist, nodes[i], nodes[j])
            if not math.isfinite(distance):
                continue
            queue.append((distance, next(counter), NodePair(nodes[i], nodes[j], distance)))
    heapq.heapify(queue)
    return queue


def best_pair_for_aggregation(graph: AggGraph, dist: DistanceFunction) -> Optional[NodePair]:
    """Closest pair in the current cut, without touching the cut."""
    queue = compute_all_pair_distances(graph, dist)
    return queue[0][2] if queue else None


def aggregate_diameter(node: Aggregate, dist: DistanceFunction) -> float:
    """Largest distance between two direct children of ``node``."""
    children = node.children
    diameter = 0.0
    for i in range(len(children) - 1):
        for j in range(i + 1, len(children)):
            current = _pair_distance(dist, children[i], children[j])
            if current > diameter:
                diameter = current
    return diameter


def best_node_for_expansion(graph: AggGraph, dist: DistanceFunction) -> Optional[Aggregate]:
    """Internal cut node whose children are furthest apart; first found wins ties."""
    max_diameter = -math.inf
    best: Optional[Aggregate] = None
    for node in graph.nodes:
        if node.is_leaf or node.aggregate_count < 2:
            continue
        diameter = aggregate_diameter(node, dist)
        if diameter > max_diameter:
            max_diameter = diameter
            best = node
    return best


def _expansion_candidate(graph: AggGraph, dist: DistanceFunction) -> Optional[Aggregate]:
    # Edge-aggregating graphs can only undo their most recent merge.
    if isinstance(graph, EdgeAggregatingGraph):
        return graph.next_expansion
    return best_node_for_expansion(graph, dist)


def run_full_clustering(
    graph: AggGraph,
    dist: DistanceFunction,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ClusteringResult:
    """Rebuild the whole hierarchy by repeatedly merging the closest pair.

    After each merge every queued pair that mentions a merged node is dropped
    immediately and the new parent is paired with every other cut node. The
    run ends when the queue is empty. Listeners see a single batched event.
    ``should_cancel`` is polled between merges.
    """
    result = ClusteringResult()
    t_start = time.time()
    logger.info("Starting full clustering: %d vertices", graph.vertex_count)

    graph.freeze()
    try:
        graph.expand_all()

        t0 = time.time()
        queue = compute_all_pair_distances(graph, dist)
        counter = itertools.count(len(queue))
        logger.info("clustering timing: pair_distances=%.2fs pairs=%d", time.time() - t0, len(queue))

        t0 = time.time()
        while queue:
            if should_cancel is not None and should_cancel():
                result.cancelled = True
                break

            _, _, pair = heapq.heappop(queue)
            parent = graph.aggregate([pair.node_a, pair.node_b])
            result.steps.append(MergeStep(parent.id, (pair.node_a.id, pair.node_b.id), pair.distance))
            logger.debug(
                "merge #%d <- #%d + #%d (distance=%.4f, queued=%d)",
                parent.id, pair.node_a.id, pair.node_b.id, pair.distance, len(queue),
            )

            queue = [
                entry for entry in queue
                if not (entry[2].references(pair.node_a) or entry[2].references(pair.node_b))
            ]
            heapq.heapify(queue)

            for node in graph.nodes:
                if node is parent:
                    continue
                distance = _pair_distance(dist, parent, node)
                if not math.isfinite(distance):
                    continue
                heapq.heappush(queue, (distance, next(counter), NodePair(parent, node, distance)))
        logger.info("clustering timing: merges=%.2fs steps=%d", time.time() - t0, len(result.steps))
    finally:
        graph.thaw()

    result.final_cut_size = graph.cut_size
    result.duration_ms = int((time.time() - t_start) * 1000)
    logger.info(
        "clustering %s: merges=%d final_cut=%d duration_ms=%d",
        "cancelled" if result.cancelled else "complete",
        len(result.steps), result.final_cut_size, result.duration_ms,
    )
    return result


def roll_up(graph: AggGraph, dist: DistanceFunction, levels: int = 1) -> int:
    """Merge the closest pair ``levels`` times. Returns how many merges happened."""
    merged = 0
    graph.freeze()
    try:
        for _ in range(levels):
            pair = best_pair_for_aggregation(graph, dist)
            if pair is None:
                break
            graph.aggregate([pair.node_a, pair.node_b])
            merged += 1
    finally:
        graph.thaw()
    return merged


def drill_down(graph: AggGraph, dist: DistanceFunction, levels: int = 1) -> int:
    """Expand the worst-merged node ``levels`` times. Returns how many expansions happened."""
    expanded = 0
    graph.freeze()
    try:
        for _ in range(levels):
            node = _expansion_candidate(graph, dist)
            if node is None:
                break
            graph.expand(node)
            expanded += 1
    finally:
        graph.thaw()
    return expanded


def set_visible_item_ratio(graph: AggGraph, dist: DistanceFunction, ratio: float) -> int:
    """Merge or expand until the cut holds ``ratio`` of the base vertices.

    The target is rounded and never below one node. Stops early when no pair
    or node is left to act on. Returns the resulting cut size.
    """
    target = max(1, int(math.floor(ratio * graph.vertex_count + 0.5)))
    graph.freeze()
    try:
        while graph.cut_size != target:
            if graph.cut_size > target:
                pair = best_pair_for_aggregation(graph, dist)
                if pair is None:
                    break
                graph.aggregate([pair.node_a, pair.node_b])
            else:
                node = _expansion_candidate(graph, dist)
                if node is None:
                    break
                graph.expand(node)
    finally:
        graph.thaw()
    logger.info("visible ratio %.2f: target=%d cut=%d", ratio, target, graph.cut_size)
    return graph.cut_size
