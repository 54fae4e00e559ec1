from src.domain.workflow.events.domain_events import DomainEvent
from src.ports.secondary.event_publisher import IEventPublisher


class InMemoryEventPublisher(IEventPublisher):
    """Collects published events in order; used by tests and local runs."""

    def __init__(self):
        self.published: list[DomainEvent] = []

    async def publish(self, events: list[DomainEvent]) -> None:
        self.published.extend(events)

    def event_types(self) -> list[str]:
        return [event.event_type for event in self.published]

    def clear(self) -> None:
        self.published.clear()
