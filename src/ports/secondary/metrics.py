from abc import ABC, abstractmethod

from src.domain.workflow.events.domain_events import DomainEvent


class IMetrics(ABC):
    @abstractmethod
    def record_command(self, command: str, status: str, duration: float) -> None:
        pass

    @abstractmethod
    def record_events(self, events: list[DomainEvent]) -> None:
        pass
