from collections.abc import Iterable

from src.domain.workflow.events.domain_events import DomainEvent
from src.domain.workflow.exceptions import EventQueueOverflowError

DEFAULT_MAX_PENDING_EVENTS = 1000


class DomainEventQueue:
    """
    FIFO of events recorded by one aggregate and not yet dispatched.

    The owning aggregate checks capacity before it mutates, so a full queue
    rejects a command instead of leaving it half applied.
    """

    def __init__(self, workflow_id: str, max_size: int = DEFAULT_MAX_PENDING_EVENTS):
        self._workflow_id = workflow_id
        self._max_size = max_size
        self._events: list[DomainEvent] = []

    @property
    def max_size(self) -> int:
        return self._max_size

    def ensure_capacity(self, count: int) -> None:
        if len(self._events) + count > self._max_size:
            raise EventQueueOverflowError(self._workflow_id, self._max_size)

    def extend(self, events: Iterable[DomainEvent]) -> None:
        events = list(events)
        self.ensure_capacity(len(events))
        self._events.extend(events)

    def peek(self) -> tuple[DomainEvent, ...]:
        return tuple(self._events)

    def drain(self) -> list[DomainEvent]:
        drained, self._events = self._events, []
        return drained

    def __len__(self) -> int:
        return len(self._events)
