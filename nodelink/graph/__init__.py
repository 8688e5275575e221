"""Base graph store and the aggregation engines built on it."""

from .base import BaseGraph, LABEL_COLUMN, REAL, STRING

__all__ = [
    "BaseGraph",
    "LABEL_COLUMN",
    "REAL",
    "STRING",
]
