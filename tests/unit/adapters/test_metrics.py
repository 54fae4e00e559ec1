from prometheus_client import CollectorRegistry

from src.domain.workflow.events.domain_events import NodeAdded, WorkflowCreated
from src.shared.metrics import MetricsRegistry


def test_record_command():
    registry = CollectorRegistry()
    metrics = MetricsRegistry(registry)

    metrics.record_command("AddNode", "succeeded", 0.01)
    metrics.record_command("AddNode", "failed", 0.02)

    assert registry.get_sample_value(
        "workflow_commands_total", {"command": "AddNode", "status": "succeeded"}
    ) == 1.0
    assert registry.get_sample_value(
        "workflow_command_duration_seconds_count", {"command": "AddNode"}
    ) == 2.0


def test_record_events_by_type():
    registry = CollectorRegistry()
    metrics = MetricsRegistry(registry)

    metrics.record_events(
        [
            WorkflowCreated(workflow_id="wf-1", name="Flow"),
            NodeAdded(workflow_id="wf-1", node_id="a", node_type="set"),
            NodeAdded(workflow_id="wf-1", node_id="b", node_type="set"),
        ]
    )

    assert registry.get_sample_value("workflow_domain_events_total", {"event_type": "NodeAdded"}) == 2.0
    assert registry.get_sample_value("workflow_domain_events_total", {"event_type": "WorkflowCreated"}) == 1.0
