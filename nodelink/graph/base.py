"""Base vertex/edge store consumed by the aggregation engines."""
from __future__ import annotations

import logging
import numbers
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

REAL = "real"
STRING = "string"
COLUMN_KINDS = (REAL, STRING)

LABEL_COLUMN = "label"


class BaseGraph:
    """Vertices are rows of a pandas table, edges are ordered ``(from, to)`` rows.

    Vertex and edge indices are dense and start at zero. The aggregation
    engines only ever read the edge rows; typed vertex columns are used by
    sorting and by the layout/outline helpers.
    """

    def __init__(self, name: str = "graph", directed: bool = True):
        self.name = name
        self.directed = directed
        self._from: List[int] = []
        self._to: List[int] = []
        self._column_kinds: Dict[str, str] = {}
        self.vertex_table = pd.DataFrame(index=pd.RangeIndex(0))
        # Bumped on every vertex data write made through this class.
        self.revision = 0

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def vertex_count(self) -> int:
        return len(self.vertex_table.index)

    @property
    def edge_count(self) -> int:
        return len(self._from)

    @property
    def is_directed(self) -> bool:
        return self.directed

    @property
    def edge_table(self) -> pd.DataFrame:
        return pd.DataFrame({"from": self._from, "to": self._to}, dtype="int64")

    def edge_endpoints(self, row: int) -> Tuple[int, int]:
        return self._from[row], self._to[row]

    def edges(self) -> Iterator[Tuple[int, int]]:
        return zip(self._from, self._to)

    def add_vertex(self, **attrs: Any) -> int:
        """Append a vertex, creating columns for unseen attributes. Returns its index."""
        index = self.vertex_count
        self.vertex_table = self.vertex_table.reindex(pd.RangeIndex(index + 1))
        self.revision += 1
        for column, value in attrs.items():
            if column not in self._column_kinds:
                self.add_column(column, _infer_kind([value]))
            self.set_value(column, index, value)
        return index

    def add_edge(self, src: int, dst: int) -> int:
        """Append an edge row. Returns its row index."""
        for vertex in (src, dst):
            if not 0 <= vertex < self.vertex_count:
                raise ValueError(
                    f"Edge endpoint {vertex} out of range for graph with {self.vertex_count} vertices"
                )
        self._from.append(int(src))
        self._to.append(int(dst))
        return len(self._from) - 1

    def expand_undirected(self) -> int:
        """Add the missing reciprocal of every edge. Returns how many rows were added."""
        present = set(zip(self._from, self._to))
        added = 0
        for row in range(self.edge_count):
            src, dst = self._from[row], self._to[row]
            if src == dst or (dst, src) in present:
                continue
            self._from.append(dst)
            self._to.append(src)
            present.add((dst, src))
            added += 1
        if added:
            logger.debug("expand_undirected: %s gained %d reciprocal edges", self.name, added)
        return added

    def clear(self) -> None:
        self._from.clear()
        self._to.clear()
        self.vertex_table = self.vertex_table.iloc[0:0]
        self.revision += 1

    # ------------------------------------------------------------------
    # Typed vertex columns
    # ------------------------------------------------------------------

    @property
    def columns(self) -> List[str]:
        return list(self._column_kinds)

    def add_column(self, name: str, kind: str) -> None:
        if kind not in COLUMN_KINDS:
            raise ValueError(f"Unknown column kind {kind!r}; expected one of {COLUMN_KINDS}")
        existing = self._column_kinds.get(name)
        if existing is not None:
            if existing != kind:
                raise ValueError(f"Column {name!r} already exists as a {existing} column")
            return
        index = self.vertex_table.index
        if kind == REAL:
            self.vertex_table[name] = pd.Series(np.nan, index=index, dtype="float64")
        else:
            self.vertex_table[name] = pd.Series([None] * len(index), index=index, dtype="object")
        self._column_kinds[name] = kind

    def column_kind(self, name: str) -> str:
        try:
            return self._column_kinds[name]
        except KeyError:
            raise ValueError(f"Unknown vertex column {name!r}") from None

    def set_value(self, column: str, row: int, value: Any) -> None:
        kind = self.column_kind(column)
        if not 0 <= row < self.vertex_count:
            raise ValueError(f"Vertex {row} out of range for graph with {self.vertex_count} vertices")
        if kind == REAL:
            value = np.nan if value is None else float(value)
        elif value is not None:
            value = str(value)
        self.vertex_table.at[row, column] = value
        self.revision += 1

    def set_column(self, column: str, values: Sequence[Any]) -> None:
        """Overwrite a whole real column with one value per vertex."""
        if self.column_kind(column) != REAL:
            raise ValueError(f"Column {column!r} is not a real column")
        if len(values) != self.vertex_count:
            raise ValueError(
                f"Column {column!r} needs {self.vertex_count} values, got {len(values)}"
            )
        self.vertex_table[column] = np.asarray(values, dtype=np.float64)
        self.revision += 1

    def real_value(self, column: str, row: int) -> float:
        if self.column_kind(column) != REAL:
            raise ValueError(f"Column {column!r} is not a real column")
        return float(self.vertex_table.at[row, column])

    def string_value(self, column: str, row: int) -> Optional[str]:
        if self.column_kind(column) != STRING:
            raise ValueError(f"Column {column!r} is not a string column")
        value = self.vertex_table.at[row, column]
        return None if value is None or pd.isna(value) else value

    # ------------------------------------------------------------------
    # networkx interop
    # ------------------------------------------------------------------

    @classmethod
    def from_networkx(cls, graph: nx.Graph, name: Optional[str] = None) -> "BaseGraph":
        """Build a base graph from any networkx graph, keeping node order."""
        base = cls(name=name or graph.graph.get("name") or "graph", directed=graph.is_directed())
        node_index: Dict[Any, int] = {}
        values: Dict[str, List[Any]] = {}
        nodes = list(graph.nodes(data=True))
        for idx, (key, attrs) in enumerate(nodes):
            node_index[key] = idx
            for attr in attrs:
                values.setdefault(attr, [])
        for attr in values:
            values[attr] = [attrs.get(attr) for _, attrs in nodes]

        base.vertex_table = pd.DataFrame(index=pd.RangeIndex(len(nodes)))
        base.add_column(LABEL_COLUMN, STRING)
        base.vertex_table[LABEL_COLUMN] = pd.Series(
            [str(attrs.get(LABEL_COLUMN, key)) for key, attrs in nodes],
            index=base.vertex_table.index,
            dtype="object",
        )
        for attr, column_values in values.items():
            if attr == LABEL_COLUMN:
                continue
            kind = _infer_kind(column_values)
            base.add_column(attr, kind)
            if kind == REAL:
                series = pd.Series(
                    [np.nan if v is None else float(v) for v in column_values],
                    index=base.vertex_table.index,
                    dtype="float64",
                )
            else:
                series = pd.Series(
                    [None if v is None else str(v) for v in column_values],
                    index=base.vertex_table.index,
                    dtype="object",
                )
            base.vertex_table[attr] = series

        for src, dst in graph.edges():
            base.add_edge(node_index[src], node_index[dst])

        logger.debug(
            "from_networkx: %d vertices, %d edges, directed=%s",
            base.vertex_count, base.edge_count, base.directed,
        )
        return base

    def to_networkx(self) -> nx.Graph:
        graph = nx.MultiDiGraph(name=self.name) if self.directed else nx.MultiGraph(name=self.name)
        for row in range(self.vertex_count):
            attrs = {}
            for column, kind in self._column_kinds.items():
                value = self.vertex_table.at[row, column]
                if value is None or pd.isna(value):
                    continue
                attrs[column] = float(value) if kind == REAL else value
            graph.add_node(row, **attrs)
        graph.add_edges_from(self.edges())
        return graph


def _infer_kind(values: List[Any]) -> str:
    present = [v for v in values if v is not None]
    if present and all(isinstance(v, numbers.Real) for v in present):
        return REAL
    return STRING
