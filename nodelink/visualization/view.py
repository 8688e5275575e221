"""Renderable snapshot of an aggregation cut, kept current through change events."""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from nodelink.graph.aggregation.balanced import EdgeAggregatingGraph
from nodelink.graph.aggregation.clustering import (
    AggGraph,
    ClusteringResult,
    drill_down,
    roll_up,
    run_full_clustering,
    set_visible_item_ratio,
)
from nodelink.graph.aggregation.distance import DistanceFunction
from nodelink.graph.aggregation.events import ChangeEvent
from nodelink.graph.aggregation.models import Aggregate
from nodelink.visualization.hull import Point
from nodelink.visualization.layout import cluster_outline, positions

logger = logging.getLogger(__name__)


@dataclass
class ClusterShape:
    """One visible cut node."""

    id: int
    members: List[int]  # base vertex rows
    centroid: Tuple[float, float]
    outline: Optional[List[Point]]  # None for leaves, drawn as a circle
    is_leaf: bool


@dataclass
class ClusterLink:
    source_id: int
    target_id: int


@dataclass
class AggregatedViewData:
    clusters: List[ClusterShape]
    links: List[ClusterLink]
    total_nodes: int
    node_radius: float

    @property
    def visible_ratio(self) -> float:
        return len(self.clusters) / self.total_nodes if self.total_nodes else 0.0

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["visible_ratio"] = self.visible_ratio
        return data


def _linked_pairs(graph: AggGraph) -> List[Tuple[Aggregate, Aggregate]]:
    seen = set()
    pairs: List[Tuple[Aggregate, Aggregate]] = []

    def record(a: Aggregate, b: Aggregate) -> None:
        key = frozenset((a.id, b.id))
        if a is b or key in seen:
            return
        seen.add(key)
        pairs.append((a, b))

    if isinstance(graph, EdgeAggregatingGraph):
        for edge in graph.edges():
            record(edge.src, edge.dst)
    else:
        for node in graph.nodes:
            for neighbor in node.neighbors:
                record(node, neighbor)
    return pairs


def build_view(graph: AggGraph, radius: float) -> AggregatedViewData:
    """Shapes for every cut node and one link per connected unordered pair."""
    t0 = time.time()
    base = graph.base
    clusters: List[ClusterShape] = []
    for node in graph.nodes:
        members = node.all_items()
        coords = positions(base, members)
        centroid = coords.mean(axis=0) if len(coords) else np.zeros(2)
        clusters.append(
            ClusterShape(
                id=node.id,
                members=[int(m) for m in members],
                centroid=(float(centroid[0]), float(centroid[1])),
                outline=cluster_outline(base, node, radius),
                is_leaf=node.is_leaf,
            )
        )
    links = [ClusterLink(a.id, b.id) for a, b in _linked_pairs(graph)]
    logger.debug(
        "build_view: clusters=%d links=%d in %.3fs", len(clusters), len(links), time.time() - t0
    )
    return AggregatedViewData(
        clusters=clusters, links=links, total_nodes=graph.vertex_count, node_radius=radius
    )


class AggregatedView:
    """Keeps view data in sync with a graph and forwards navigation requests.

    The view subscribes on construction; call ``close`` to detach it.
    """

    def __init__(self, graph: AggGraph, dist: DistanceFunction, radius: float):
        self.graph = graph
        self.dist = dist
        self.radius = radius
        self.rebuilds = 0
        self.data = build_view(graph, radius)
        graph.subscribe(self._on_change)

    def _on_change(self, event: ChangeEvent) -> None:
        if self.graph.frozen:
            return
        self.data = build_view(self.graph, self.radius)
        self.rebuilds += 1
        logger.debug("view rebuilt after %s event (batched=%s)", event.name, event.is_batched)

    def close(self) -> None:
        self.graph.unsubscribe(self._on_change)

    # Navigation

    def cluster(self) -> ClusteringResult:
        return run_full_clustering(self.graph, self.dist)

    def roll_up(self, levels: int = 1) -> int:
        return roll_up(self.graph, self.dist, levels)

    def drill_down(self, levels: int = 1) -> int:
        return drill_down(self.graph, self.dist, levels)

    def set_visible_item_ratio(self, ratio: float) -> int:
        return set_visible_item_ratio(self.graph, self.dist, ratio)

    def expand(self, node: Aggregate) -> int:
        return self.graph.expand(node)

    def aggregate(self, nodes: Sequence[Aggregate]) -> Aggregate:
        return self.graph.aggregate(nodes)

    def shape_for(self, node: Aggregate) -> Optional[ClusterShape]:
        for shape in self.data.clusters:
            if shape.id == node.id:
                return shape
        return None
