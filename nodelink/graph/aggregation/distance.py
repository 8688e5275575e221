"""Distance functions between aggregates."""
from __future__ import annotations

import weakref
from typing import Callable, Protocol

import numpy as np
from scipy.spatial.distance import euclidean

from nodelink.config import X_COLUMN, Y_COLUMN
from nodelink.graph.aggregation.models import Aggregate
from nodelink.graph.base import BaseGraph


class DistanceFunction(Protocol):
    """Symmetric, non-negative distance between two aggregates."""

    def distance(self, a: Aggregate, b: Aggregate) -> float:
        ...


class MidpointDistance:
    """Euclidean distance between the mean layout positions of two aggregates.

    Positions come from the ``#X``/``#Y`` real columns of the base graph.
    Midpoints are cached per aggregate object, so one instance can serve
    several graphs over the same base. The cache is dropped whenever the base
    graph reports a vertex data write.
    """

    def __init__(self, base: BaseGraph, x_column: str = X_COLUMN, y_column: str = Y_COLUMN):
        self.base = base
        self.x_column = x_column
        self.y_column = y_column
        self._midpoints: "weakref.WeakKeyDictionary[Aggregate, np.ndarray]" = weakref.WeakKeyDictionary()
        self._revision = base.revision

    def midpoint(self, node: Aggregate) -> np.ndarray:
        if self.base.revision != self._revision:
            self.reset()
        cached = self._midpoints.get(node)
        if cached is not None:
            return cached

        missing = [c for c in (self.x_column, self.y_column) if c not in self.base.columns]
        if missing:
            raise ValueError(f"Unknown vertex column {missing[0]!r}; run a layout first")

        rows = node.all_items()
        points = self.base.vertex_table.loc[rows, [self.x_column, self.y_column]].to_numpy(dtype=float)
        midpoint = points.mean(axis=0) if len(points) else np.full(2, np.nan)
        self._midpoints[node] = midpoint
        return midpoint

    def distance(self, a: Aggregate, b: Aggregate) -> float:
        return float(euclidean(self.midpoint(a), self.midpoint(b)))

    def reset(self) -> None:
        """Forget every cached midpoint."""
        self._midpoints.clear()
        self._revision = self.base.revision


class _CallableDistance:
    def __init__(self, func: Callable[[Aggregate, Aggregate], float]):
        self._func = func

    def distance(self, a: Aggregate, b: Aggregate) -> float:
        return float(self._func(a, b))


def as_distance(func: Callable[[Aggregate, Aggregate], float]) -> DistanceFunction:
    """Wrap a plain ``f(a, b)`` so it can be passed where a DistanceFunction is expected."""
    return _CallableDistance(func)
