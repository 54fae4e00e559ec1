from abc import ABC, abstractmethod

from src.domain.workflow.events.domain_events import DomainEvent


class IEventPublisher(ABC):
    """
    Interface for dispatching drained domain events to interested observers.

    Events arrive in the order the aggregate recorded them.
    """

    @abstractmethod
    async def publish(self, events: list[DomainEvent]) -> None:
        pass
