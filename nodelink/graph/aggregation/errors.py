"""Exceptions for misuse of the aggregation engines."""


class InvalidAggregateError(ValueError):
    """An aggregate was built inconsistently (items on an internal node, children on a leaf)."""


class ExpansionOrderError(RuntimeError):
    """An edge-aggregating graph was asked to expand out of stack order."""


class ReentrantMutationError(RuntimeError):
    """A graph was mutated from inside one of its own change listeners."""
