"""Change notification for aggregation graphs."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional

logger = logging.getLogger(__name__)

AGGREGATION = "aggregation"
ORDER = "order"

EventName = Literal["aggregation", "order"]


@dataclass(frozen=True)
class ChangeEvent:
    """A single notification.

    For ``aggregation`` events ``before``/``after`` hold the replaced and the
    new cut nodes, or are both ``None`` for the batched signal sent by
    ``thaw``. For ``order`` events ``after`` holds the applied permutation.
    """

    name: EventName
    before: Optional[Any] = None
    after: Optional[Any] = None

    @property
    def is_batched(self) -> bool:
        return self.before is None and self.after is None


Listener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Dispatches events to global listeners, then to per-event listeners."""

    def __init__(self) -> None:
        self._global: List[Listener] = []
        self._named: Dict[str, List[Listener]] = {}
        self.dispatching = False

    def subscribe(self, listener: Listener, event: Optional[EventName] = None) -> None:
        if event is None:
            self._global.append(listener)
        else:
            self._named.setdefault(event, []).append(listener)

    def unsubscribe(self, listener: Listener, event: Optional[EventName] = None) -> None:
        bucket = self._global if event is None else self._named.get(event, [])
        if listener in bucket:
            bucket.remove(listener)

    def listeners(self, event: Optional[EventName] = None) -> List[Listener]:
        if event is None:
            return list(self._global)
        return list(self._named.get(event, []))

    def has_listeners(self, event: EventName) -> bool:
        return bool(self._global or self._named.get(event))

    def fire(self, event: ChangeEvent) -> None:
        targets = self._global + self._named.get(event.name, [])
        if not targets:
            return
        logger.debug("dispatching %s event to %d listeners", event.name, len(targets))
        self.dispatching = True
        try:
            for listener in targets:
                listener(event)
        finally:
            self.dispatching = False
