from fastapi import Depends

from src.adapters.secondary.events.logging_event_publisher import LoggingEventPublisher
from src.adapters.secondary.memory.in_memory_event_publisher import InMemoryEventPublisher
from src.adapters.secondary.memory.in_memory_workflow_lock import InMemoryWorkflowLock
from src.adapters.secondary.memory.in_memory_workflow_repository import InMemoryWorkflowRepository
from src.adapters.secondary.persistence.pg_workflow_repository import PostgresWorkflowRepository
from src.adapters.secondary.redis.redis_event_publisher import RedisEventPublisher
from src.adapters.secondary.redis.redis_workflow_lock import RedisWorkflowLock
from src.application.workflow.use_cases.workflow_commands import WorkflowCommandService
from src.application.workflow.use_cases.workflow_queries import WorkflowQueryService
from src.ports.secondary.event_publisher import IEventPublisher
from src.ports.secondary.workflow_lock import IWorkflowLock
from src.ports.secondary.workflow_repository import IWorkflowRepository
from src.shared.config import settings
from src.shared.database import async_session_factory
from src.shared.metrics import metrics_registry
from src.shared.redis_client import redis_client

# Process-wide backing state for the in-memory backends, injected into adapters below
memory_store: dict[str, dict] = {}
memory_lock = InMemoryWorkflowLock(settings.LOCK_ACQUIRE_TIMEOUT_SECONDS)
memory_publisher = InMemoryEventPublisher()


async def get_workflow_repository() -> IWorkflowRepository:
    if settings.REPOSITORY_BACKEND == "postgres":
        async with async_session_factory() as session:
            yield PostgresWorkflowRepository(session, settings.MAX_PENDING_EVENTS)
    else:
        yield InMemoryWorkflowRepository(memory_store, settings.MAX_PENDING_EVENTS)


def get_event_publisher() -> IEventPublisher:
    if settings.EVENT_PUBLISHER_BACKEND == "redis":
        return RedisEventPublisher(redis_client)
    if settings.EVENT_PUBLISHER_BACKEND == "memory":
        return memory_publisher
    return LoggingEventPublisher()


def get_workflow_lock() -> IWorkflowLock:
    if settings.LOCK_BACKEND == "redis":
        return RedisWorkflowLock(redis_client)
    return memory_lock


async def get_workflow_command_service(
    workflow_repository: IWorkflowRepository = Depends(get_workflow_repository),
    event_publisher: IEventPublisher = Depends(get_event_publisher),
    workflow_lock: IWorkflowLock = Depends(get_workflow_lock),
) -> WorkflowCommandService:
    return WorkflowCommandService(
        workflow_repository=workflow_repository,
        event_publisher=event_publisher,
        workflow_lock=workflow_lock,
        metrics=metrics_registry,
        require_deactivation_for_edits=settings.REQUIRE_DEACTIVATION_FOR_EDITS,
        max_pending_events=settings.MAX_PENDING_EVENTS,
    )


async def get_workflow_query_service(
    workflow_repository: IWorkflowRepository = Depends(get_workflow_repository),
) -> WorkflowQueryService:
    return WorkflowQueryService(workflow_repository)
