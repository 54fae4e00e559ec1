from src.domain.workflow.events.domain_events import DomainEvent
from src.ports.secondary.event_publisher import IEventPublisher
from src.shared.logger import get_logger

logger = get_logger(__name__)


class LoggingEventPublisher(IEventPublisher):
    """Writes each domain event as a structured log line."""

    async def publish(self, events: list[DomainEvent]) -> None:
        for event in events:
            logger.info(
                "domain_event",
                event_type=event.event_type,
                event_id=event.event_id,
                workflow_id=event.workflow_id,
                occurred_at=event.occurred_at.isoformat(),
                payload=event.payload(),
            )
