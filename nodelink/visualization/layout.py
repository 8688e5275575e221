"""Vertex placement and cluster outlines."""
from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from nodelink.config import X_COLUMN, Y_COLUMN
from nodelink.graph.aggregation.models import Aggregate
from nodelink.graph.base import REAL, BaseGraph
from nodelink.visualization.hull import ConvexHull, Point

logger = logging.getLogger(__name__)


def random_layout(
    base: BaseGraph,
    width: int,
    height: int,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Place every vertex on an integer grid position inside ``width x height``.

    Creates the position columns when missing and returns the ``(V, 2)`` array
    that was written.
    """
    rng = np.random.default_rng(seed)
    xs = rng.integers(0, width, size=base.vertex_count)
    ys = rng.integers(0, height, size=base.vertex_count)

    for column in (X_COLUMN, Y_COLUMN):
        base.add_column(column, REAL)
    base.set_column(X_COLUMN, xs)
    base.set_column(Y_COLUMN, ys)

    logger.debug("random_layout: %d vertices in %dx%d (seed=%s)", base.vertex_count, width, height, seed)
    return np.column_stack([xs, ys]).astype(np.float64)


def positions(base: BaseGraph, rows: List[int]) -> np.ndarray:
    return base.vertex_table.loc[rows, [X_COLUMN, Y_COLUMN]].to_numpy(dtype=float)


def cluster_outline(base: BaseGraph, node: Aggregate, radius: float) -> Optional[List[Point]]:
    """Hull around ``radius``-sized discs centred on each member. None for leaves."""
    if node.is_leaf:
        return None
    offsets = np.array([[-radius, 0.0], [radius, 0.0], [0.0, -radius], [0.0, radius]])
    hull = ConvexHull()
    for x, y in positions(base, node.all_items()):
        # Compass points approximate the disc drawn for each member
        hull.add_points((x + dx, y + dy) for dx, dy in offsets)
    return hull.compute()
