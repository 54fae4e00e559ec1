import json

import redis.asyncio as redis

from src.domain.workflow.events.domain_events import DomainEvent
from src.ports.secondary.event_publisher import IEventPublisher
from src.shared.config import settings


class RedisEventPublisher(IEventPublisher):
    """Appends domain events to a capped Redis Stream, one entry per event, in order."""

    EVENT_STREAM = settings.STREAM_EVENTS_KEY

    def __init__(self, redis_client: redis.Redis, max_len: int | None = None):
        self._redis = redis_client
        self._max_len = max_len if max_len is not None else settings.STREAM_MAX_LEN

    async def publish(self, events: list[DomainEvent]) -> list[str]:
        message_ids = []
        for event in events:
            message_id = await self._redis.xadd(
                self.EVENT_STREAM,
                {
                    "event_id": event.event_id,
                    "event_type": event.event_type,
                    "workflow_id": event.workflow_id,
                    "occurred_at": event.occurred_at.isoformat(),
                    "payload": json.dumps(event.payload()),
                },
                maxlen=self._max_len,
                approximate=True,
            )
            message_ids.append(message_id)
        return message_ids
