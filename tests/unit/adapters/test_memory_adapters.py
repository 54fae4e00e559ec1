import asyncio
from unittest.mock import patch

import pytest

from src.adapters.secondary.events.logging_event_publisher import LoggingEventPublisher
from src.adapters.secondary.memory.in_memory_event_publisher import InMemoryEventPublisher
from src.adapters.secondary.memory.in_memory_workflow_lock import InMemoryWorkflowLock
from src.adapters.secondary.memory.in_memory_workflow_repository import InMemoryWorkflowRepository
from src.domain.workflow.entities.workflow import Workflow
from src.domain.workflow.events.domain_events import WorkflowCreated
from src.domain.workflow.exceptions import WorkflowNotFoundError


class TestInMemoryWorkflowRepository:
    @pytest.mark.asyncio
    async def test_save_and_get_returns_independent_copy(self):
        repo = InMemoryWorkflowRepository()
        workflow = Workflow.create("Flow", nodes=[{"id": "a", "type": "set"}])
        await repo.save(workflow)

        loaded = await repo.get_by_id(str(workflow.id))
        loaded.add_node({"id": "b", "type": "set"})

        reloaded = await repo.get_by_id(str(workflow.id))
        assert list(reloaded.nodes) == ["a"]
        assert loaded is not workflow

    @pytest.mark.asyncio
    async def test_get_missing(self):
        repo = InMemoryWorkflowRepository()

        assert await repo.get_by_id("00000000-0000-4000-8000-000000000000") is None

    @pytest.mark.asyncio
    async def test_delete(self):
        repo = InMemoryWorkflowRepository()
        workflow = Workflow.create("Flow")
        await repo.save(workflow)

        await repo.delete(str(workflow.id))

        assert await repo.get_by_id(str(workflow.id)) is None
        with pytest.raises(WorkflowNotFoundError):
            await repo.delete(str(workflow.id))

    @pytest.mark.asyncio
    async def test_list_all_most_recent_first(self):
        repo = InMemoryWorkflowRepository()
        older = Workflow.create("Older")
        newer = Workflow.create("Newer")
        await repo.save(newer)
        await repo.save(older)
        older.rename("Older, edited")
        await repo.save(older)

        names = [wf.name for wf in await repo.list_all()]

        assert names == ["Older, edited", "Newer"]

    @pytest.mark.asyncio
    async def test_shared_store(self):
        store: dict[str, dict] = {}
        workflow = Workflow.create("Flow")
        await InMemoryWorkflowRepository(store).save(workflow)

        assert await InMemoryWorkflowRepository(store).get_by_id(str(workflow.id)) == workflow


class TestInMemoryWorkflowLock:
    @pytest.mark.asyncio
    async def test_second_acquire_times_out(self):
        lock = InMemoryWorkflowLock(acquire_timeout_seconds=0.01)

        assert await lock.acquire("wf-1") is True
        assert await lock.acquire("wf-1") is False
        assert await lock.acquire("wf-2") is True

    @pytest.mark.asyncio
    async def test_waiter_gets_lock_after_release(self):
        lock = InMemoryWorkflowLock(acquire_timeout_seconds=1.0)
        await lock.acquire("wf-1")

        waiter = asyncio.create_task(lock.acquire("wf-1"))
        await asyncio.sleep(0)
        await lock.release("wf-1")

        assert await waiter is True
        assert lock.is_locked("wf-1") is True

    @pytest.mark.asyncio
    async def test_release_drops_idle_lock(self):
        lock = InMemoryWorkflowLock()
        await lock.acquire("wf-1")

        await lock.release("wf-1")
        await lock.release("wf-1")

        assert lock.is_locked("wf-1") is False
        assert lock._locks == {}


class TestEventPublishers:
    @pytest.mark.asyncio
    async def test_in_memory_publisher_keeps_order(self):
        publisher = InMemoryEventPublisher()
        await publisher.publish([WorkflowCreated(workflow_id="wf-1", name="A")])
        await publisher.publish([WorkflowCreated(workflow_id="wf-2", name="B")])

        assert [e.workflow_id for e in publisher.published] == ["wf-1", "wf-2"]
        publisher.clear()
        assert publisher.event_types() == []

    @pytest.mark.asyncio
    async def test_logging_publisher(self):
        publisher = LoggingEventPublisher()

        with patch("src.adapters.secondary.events.logging_event_publisher.logger") as mock_logger:
            await publisher.publish([WorkflowCreated(workflow_id="wf-1", name="A")])

        mock_logger.info.assert_called_once()
        args, kwargs = mock_logger.info.call_args
        assert args == ("domain_event",)
        assert kwargs["event_type"] == "WorkflowCreated"
        assert kwargs["payload"] == {"name": "A"}
