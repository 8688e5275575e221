"""Persistent aggregation tree primitive shared by nodes and edges."""
from __future__ import annotations

from typing import Generic, Iterator, List, Optional, Sequence, TypeVar

from nodelink.graph.aggregation.errors import InvalidAggregateError

T = TypeVar("T")
A = TypeVar("A", bound="Aggregate")


class Aggregate(Generic[T]):
    """A leaf owning base items, or an internal node owning child aggregates.

    Children are never detached once added: merging creates a new parent over
    existing aggregates, expanding just exposes them again.
    """

    def __init__(self, aggregate_id: int):
        self.id = aggregate_id
        self._items: List[T] = []
        self._children: List["Aggregate[T]"] = []

    # Leaf side

    def add_item(self, item: T) -> None:
        if self._children:
            raise InvalidAggregateError(f"Cannot add item {item!r} to internal aggregate #{self.id}")
        self._items.append(item)

    @property
    def item_count(self) -> int:
        return len(self._items)

    def item(self, index: int) -> T:
        return self._items[index]

    @property
    def items(self) -> Sequence[T]:
        return tuple(self._items)

    def contains_item(self, item: T) -> bool:
        return item in self.all_items()

    # Internal side

    def add_aggregate(self, child: "Aggregate[T]") -> None:
        if self._items:
            raise InvalidAggregateError(f"Cannot add children to leaf aggregate #{self.id}")
        if child is self or child.covers(self):
            raise InvalidAggregateError(f"Aggregate #{self.id} cannot contain itself")
        self._children.append(child)

    @property
    def aggregate_count(self) -> int:
        return len(self._children)

    def aggregate(self, index: int) -> "Aggregate[T]":
        return self._children[index]

    @property
    def children(self) -> Sequence["Aggregate[T]"]:
        return tuple(self._children)

    def contains_aggregate(self, child: "Aggregate[T]") -> bool:
        return any(c is child for c in self._children)

    # Whole tree

    @property
    def is_leaf(self) -> bool:
        return not self._children

    def all_items(self) -> List[T]:
        """Own items followed by every descendant's items, depth first."""
        collected = list(self._items)
        for child in self._children:
            collected.extend(child.all_items())
        return collected

    def first_item(self) -> Optional[T]:
        if self._items:
            return self._items[0]
        for child in self._children:
            found = child.first_item()
            if found is not None:
                return found
        return None

    def leaves(self: A) -> List[A]:
        if self.is_leaf:
            return [self]
        collected: List[A] = []
        for child in self._children:
            collected.extend(child.leaves())
        return collected

    def descendants(self) -> Iterator["Aggregate[T]"]:
        for child in self._children:
            yield child
            yield from child.descendants()

    def covers(self, other: "Aggregate[T]") -> bool:
        """True if ``other`` is this aggregate or sits anywhere below it."""
        if other is self:
            return True
        return any(d is other for d in self.descendants())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(#{self.id}, items={self.all_items()})"
