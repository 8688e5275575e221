"""View data for drawing an aggregated node-link graph."""
from nodelink.visualization.hull import ConvexHull, compute_hull, relative_ccw
from nodelink.visualization.layout import cluster_outline, random_layout
from nodelink.visualization.view import (
    AggregatedView,
    AggregatedViewData,
    ClusterLink,
    ClusterShape,
    build_view,
)

__all__ = [
    "ConvexHull",
    "compute_hull",
    "relative_ccw",
    "cluster_outline",
    "random_layout",
    "AggregatedView",
    "AggregatedViewData",
    "ClusterLink",
    "ClusterShape",
    "build_view",
]
