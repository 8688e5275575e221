"""Cut bookkeeping shared by both aggregation engines.

A cut is the ordered list of aggregates currently visible. Their leaf items
always partition the base vertices ``0..V-1``; subclasses are responsible for
keeping that true across aggregate/expand, this module only provides the
lookups, ordering and notification plumbing around it.
"""
from __future__ import annotations

import itertools
import logging
import math
from typing import Generic, Iterable, Iterator, List, Optional, Sequence, TypeVar

from nodelink.graph.aggregation.errors import ReentrantMutationError
from nodelink.graph.aggregation.events import (
    AGGREGATION,
    ORDER,
    ChangeEvent,
    ChangeNotifier,
    EventName,
    Listener,
)
from nodelink.graph.aggregation.models import Aggregate
from nodelink.graph.base import REAL, BaseGraph

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Aggregate)


class CutGraph(Generic[N]):
    """Owns the cut, the id counter and the change notifier of one graph."""

    def __init__(self, base: BaseGraph):
        self.base = base
        self._cut: List[N] = []
        self._notifier = ChangeNotifier()
        self._fire_changes = True
        self._ids = itertools.count()

    def _next_id(self) -> int:
        return next(self._ids)

    # ------------------------------------------------------------------
    # Cut access
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> List[N]:
        return list(self._cut)

    @property
    def cut_size(self) -> int:
        return len(self._cut)

    def node(self, index: int) -> N:
        return self._cut[index]

    def index_of(self, node: N) -> int:
        for index, candidate in enumerate(self._cut):
            if candidate is node:
                return index
        return -1

    def __len__(self) -> int:
        return len(self._cut)

    def __iter__(self) -> Iterator[N]:
        return iter(list(self._cut))

    def __contains__(self, node: object) -> bool:
        return any(candidate is node for candidate in self._cut)

    @property
    def vertex_count(self) -> int:
        return self.base.vertex_count

    @property
    def edge_count(self) -> int:
        return self.base.edge_count

    @property
    def is_directed(self) -> bool:
        return self.base.is_directed

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener, event: Optional[EventName] = None) -> None:
        self._notifier.subscribe(listener, event)

    def unsubscribe(self, listener: Listener, event: Optional[EventName] = None) -> None:
        self._notifier.unsubscribe(listener, event)

    def listeners(self, event: Optional[EventName] = None) -> List[Listener]:
        return self._notifier.listeners(event)

    @property
    def frozen(self) -> bool:
        return not self._fire_changes

    def freeze(self) -> None:
        """Suspend aggregation events until ``thaw``. Mutations still apply immediately."""
        self._fire_changes = False

    def thaw(self) -> None:
        """Resume aggregation events and announce that anything may have changed."""
        self._fire_changes = True
        self._notifier.fire(ChangeEvent(AGGREGATION))

    def _guard_mutation(self) -> None:
        if self._notifier.dispatching:
            raise ReentrantMutationError(
                f"{type(self).__name__} cannot be mutated from inside its own change listener"
            )

    def _fire_aggregation(self, before: Sequence[N], after: Sequence[N]) -> None:
        if self._fire_changes:
            self._notifier.fire(ChangeEvent(AGGREGATION, list(before), list(after)))

    # ------------------------------------------------------------------
    # Row lookups
    # ------------------------------------------------------------------

    def map_row_to_agg_node(self, row: int) -> int:
        """Cut index of the node containing base vertex ``row``, or -1."""
        for index, node in enumerate(self._cut):
            if node.contains_item(row):
                return index
        return -1

    def map_rows_to_agg_nodes(self, rows: Iterable[int]) -> List[int]:
        """Cut indices for a batch of rows; each cut node is reported at most once."""
        visited = set()
        indices: List[int] = []
        for row in rows:
            for index, node in enumerate(self._cut):
                if id(node) in visited:
                    continue
                if node.contains_item(row):
                    indices.append(index)
                    visited.add(id(node))
                    break
        return indices

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def permutate(self, permutation: Sequence[int]) -> None:
        """Reorder the cut so that ``permutation[k]`` becomes position ``k``.

        Out-of-range and repeated indices are skipped; nodes the permutation
        leaves out are appended in their current order.
        """
        self._guard_mutation()
        seen = set()
        reordered: List[N] = []
        for index in permutation:
            if index < 0 or index >= len(self._cut) or index in seen:
                continue
            seen.add(index)
            reordered.append(self._cut[index])
        for index, node in enumerate(self._cut):
            if index not in seen:
                reordered.append(node)
        self._cut = reordered
        self._notifier.fire(ChangeEvent(ORDER, None, list(permutation)))

    def sort_nodes(self, column: str, reverse: bool = False) -> List[int]:
        """Sort the cut by a vertex column, using each node's first leaf row.

        String columns compare lexicographically, real columns numerically.
        Missing values sort after present ones. Returns the applied permutation.
        """
        kind = self.base.column_kind(column)
        keyed = []
        for index, node in enumerate(self._cut):
            row = node.first_item()
            if kind == REAL:
                value = self.base.real_value(column, row)
                missing = math.isnan(value)
                key = (missing, 0.0 if missing else value)
            else:
                value = self.base.string_value(column, row)
                missing = value is None
                key = (missing, "" if missing else value)
            keyed.append((key, index))

        keyed.sort(key=lambda entry: entry[0])
        permutation = [index for _, index in keyed]
        if reverse:
            permutation.reverse()

        logger.debug("sort_nodes: column=%s reverse=%s size=%d", column, reverse, len(permutation))
        self.permutate(permutation)
        return permutation
