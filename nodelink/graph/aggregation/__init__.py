"""Hierarchical aggregation of graph vertices into navigable cuts."""
from nodelink.graph.aggregation.models import Aggregate
from nodelink.graph.aggregation.errors import (
    ExpansionOrderError,
    InvalidAggregateError,
    ReentrantMutationError,
)
from nodelink.graph.aggregation.events import (
    AGGREGATION,
    ORDER,
    ChangeEvent,
    ChangeNotifier,
)
from nodelink.graph.aggregation.adjacency import AdjacencyAggGraph, AggNode
from nodelink.graph.aggregation.balanced import AggEdge, BalancedNode, EdgeAggregatingGraph
from nodelink.graph.aggregation.distance import DistanceFunction, MidpointDistance, as_distance
from nodelink.graph.aggregation.clustering import (
    ClusteringResult,
    MergeStep,
    NodePair,
    best_node_for_expansion,
    best_pair_for_aggregation,
    compute_all_pair_distances,
    drill_down,
    roll_up,
    run_full_clustering,
    set_visible_item_ratio,
)

__all__ = [
    "Aggregate",
    "ExpansionOrderError",
    "InvalidAggregateError",
    "ReentrantMutationError",
    "AGGREGATION",
    "ORDER",
    "ChangeEvent",
    "ChangeNotifier",
    "AdjacencyAggGraph",
    "AggNode",
    "AggEdge",
    "BalancedNode",
    "EdgeAggregatingGraph",
    "DistanceFunction",
    "MidpointDistance",
    "as_distance",
    "ClusteringResult",
    "MergeStep",
    "NodePair",
    "best_node_for_expansion",
    "best_pair_for_aggregation",
    "compute_all_pair_distances",
    "drill_down",
    "roll_up",
    "run_full_clustering",
    "set_visible_item_ratio",
]
