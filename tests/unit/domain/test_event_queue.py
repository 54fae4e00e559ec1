import pytest

from src.domain.workflow.events.domain_events import EVENT_TYPES, NodeAdded, NodeRemoved, WorkflowCreated
from src.domain.workflow.events.event_queue import DomainEventQueue
from src.domain.workflow.exceptions import EventQueueOverflowError


def test_queue_is_fifo_and_drain_clears():
    queue = DomainEventQueue("wf-1")
    first = NodeAdded(workflow_id="wf-1", node_id="n1", node_type="set")
    second = NodeRemoved(workflow_id="wf-1", node_id="n1")

    queue.extend([first])
    queue.extend([second])

    assert queue.peek() == (first, second)
    assert queue.drain() == [first, second]
    assert len(queue) == 0
    assert queue.drain() == []


def test_queue_rejects_overflow_without_partial_append():
    queue = DomainEventQueue("wf-1", max_size=2)
    queue.extend([WorkflowCreated(workflow_id="wf-1", name="x")])

    with pytest.raises(EventQueueOverflowError):
        queue.extend(
            [
                NodeAdded(workflow_id="wf-1", node_id="n1", node_type="set"),
                NodeAdded(workflow_id="wf-1", node_id="n2", node_type="set"),
            ]
        )

    assert len(queue) == 1


def test_event_to_dict():
    event = NodeAdded(workflow_id="wf-1", node_id="n1", node_type="httpRequest")

    data = event.to_dict()

    assert data["event_type"] == "NodeAdded"
    assert data["workflow_id"] == "wf-1"
    assert data["payload"] == {"node_id": "n1", "node_type": "httpRequest"}
    assert data["event_id"]


def test_events_are_immutable():
    event = NodeRemoved(workflow_id="wf-1", node_id="n1")

    with pytest.raises(AttributeError):
        event.node_id = "n2"


def test_event_type_registry_is_closed():
    assert set(EVENT_TYPES) == {
        "WorkflowCreated",
        "WorkflowRenamed",
        "WorkflowMetadataUpdated",
        "NodeAdded",
        "NodeRemoved",
        "NodeUpdated",
        "ConnectionAdded",
        "ConnectionRemoved",
        "WorkflowActivated",
        "WorkflowDeactivated",
        "WorkflowDuplicated",
        "WorkflowDeleted",
    }
