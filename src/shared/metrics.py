from prometheus_client import Counter, Histogram

from src.domain.workflow.events.domain_events import DomainEvent
from src.ports.secondary.metrics import IMetrics


class MetricsRegistry(IMetrics):
    """Prometheus metrics registry."""

    def __init__(self, registry=None):
        kwargs = {"registry": registry} if registry is not None else {}

        # Command metrics
        self.WORKFLOW_COMMANDS_TOTAL = Counter(
            "workflow_commands_total",
            "Total number of workflow commands handled",
            ["command", "status"],
            **kwargs,
        )

        self.WORKFLOW_COMMAND_DURATION_SECONDS = Histogram(
            "workflow_command_duration_seconds",
            "Time taken to handle a workflow command",
            ["command"],
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5),
            **kwargs,
        )

        # Event metrics
        self.DOMAIN_EVENTS_TOTAL = Counter(
            "workflow_domain_events_total",
            "Total number of domain events dispatched",
            ["event_type"],
            **kwargs,
        )

    def record_command(self, command: str, status: str, duration: float):
        self.WORKFLOW_COMMANDS_TOTAL.labels(command=command, status=status).inc()
        self.WORKFLOW_COMMAND_DURATION_SECONDS.labels(command=command).observe(duration)

    def record_events(self, events: list[DomainEvent]):
        for event in events:
            self.DOMAIN_EVENTS_TOTAL.labels(event_type=event.event_type).inc()


# Global registry instance for adapter/framework layer
metrics_registry = MetricsRegistry()
