"""Gift-wrapping convex hull for the small point sets behind cluster outlines."""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def relative_ccw(a: Point, b: Point, p: Point) -> int:
    """Side of ``p`` relative to the directed line ``a -> b``.

    +1 left, -1 right, 0 on the line. Coincident ``a``/``b`` give 0.
    """
    cross = (b[0] - a[0]) * (p[1] - a[1]) - (b[1] - a[1]) * (p[0] - a[0])
    if cross > 0:
        return 1
    if cross < 0:
        return -1
    return 0


def _has_point_on_right(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> bool:
    direction = b - a
    offsets = points - a
    cross = direction[0] * offsets[:, 1] - direction[1] * offsets[:, 0]
    return bool((cross < 0).any())


def _farthest_on_ray(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> int:
    """Index of the point furthest from ``a`` on the ray through ``b``."""
    direction = b - a
    offsets = points - a
    cross = direction[0] * offsets[:, 1] - direction[1] * offsets[:, 0]
    along = offsets @ direction
    along[(cross != 0) | (along <= 0)] = -np.inf
    return int(np.argmax(along))


def compute_hull(points: Sequence[Point]) -> List[Point]:
    """Hull vertices in counter-clockwise order, implicitly closed.

    Walks from the lowest point (first one on ties), each time taking the first
    candidate that leaves no input point on its right and then sliding to the
    furthest point collinear with it. A collinear input yields its two end
    points (plus the start point when that lies between them).
    """
    if not points:
        return []

    # Stable sort keeps the first encountered point among equal y values
    order = sorted(range(len(points)), key=lambda i: points[i][1])
    ordered = np.asarray([points[i] for i in order], dtype=float).reshape(-1, 2)

    hull_indices = [0]
    current = 0
    for _ in range(len(ordered)):
        chosen = -1
        for candidate in range(len(ordered)):
            if np.array_equal(ordered[candidate], ordered[current]):
                continue
            if not _has_point_on_right(ordered, ordered[current], ordered[candidate]):
                chosen = _farthest_on_ray(ordered, ordered[current], ordered[candidate])
                break
        if chosen < 0:
            break
        if any(np.array_equal(ordered[chosen], ordered[i]) for i in hull_indices):
            break
        hull_indices.append(chosen)
        current = chosen

    hull = [(float(ordered[i][0]), float(ordered[i][1])) for i in hull_indices]
    logger.debug("compute_hull: %d points -> %d hull vertices", len(points), len(hull))
    return hull


class ConvexHull:
    """Accumulates points and lazily computes their hull."""

    def __init__(self, points: Iterable[Point] = ()):
        self._points: List[Point] = []
        self._hull: List[Point] = []
        self._dirty = False
        self.add_points(points)

    def add_point(self, point: Point) -> None:
        self._points.append((float(point[0]), float(point[1])))
        self._dirty = True

    def add_points(self, points: Iterable[Point]) -> None:
        for point in points:
            self.add_point(point)

    def clear(self) -> None:
        self._points = []
        self._hull = []
        self._dirty = False

    @property
    def points(self) -> List[Point]:
        return list(self._points)

    def compute(self) -> List[Point]:
        self._hull = compute_hull(self._points)
        self._dirty = False
        return list(self._hull)

    @property
    def hull(self) -> List[Point]:
        if self._dirty:
            self.compute()
        return list(self._hull)

    def path(self) -> List[Point]:
        """Hull vertices with the first one repeated at the end."""
        hull = self.hull
        return hull + hull[:1] if hull else []
