"""Operation filtering and per-tick event capping."""

import logging
from typing import FrozenSet, Iterable, List

from .models import Event, Op

logger = logging.getLogger(__name__)


class OpFilter:
    """
    Restricts which events reach the consumer in a tick.

    Events whose op is not allowed are dropped first and do not count
    against the cap. Events beyond max_events are dropped for the tick;
    nothing is queued or replayed.
    """

    def __init__(self, ops: Iterable[Op] = (), max_events: int = 0):
        """
        Initialize the filter.

        Args:
            ops: Allowed operations (empty allows all)
            max_events: Maximum events per tick (0 = unlimited)
        """
        self.ops: FrozenSet[Op] = frozenset(ops)
        self.max_events = max_events

    def allows(self, op: Op) -> bool:
        """Check if an operation passes the op filter."""
        return not self.ops or op in self.ops

    def apply(self, events: Iterable[Event]) -> List[Event]:
        """
        Filter and cap the events of one tick.

        Args:
            events: Events in delivery order

        Returns:
            The events to deliver
        """
        events = list(events)
        allowed = [event for event in events if self.allows(event.op)]

        if self.max_events > 0 and len(allowed) > self.max_events:
            logger.debug(
                f"Dropping {len(allowed) - self.max_events} event(s) over the "
                f"per-tick limit of {self.max_events}"
            )
            allowed = allowed[:self.max_events]

        filtered = len(events) - len(allowed)
        if filtered:
            logger.debug(f"Delivering {len(allowed)} of {len(events)} event(s)")
        return allowed
