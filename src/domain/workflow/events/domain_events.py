from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar
from uuid import uuid4

from src.domain.workflow.value_objects.connection import Connection


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """
    Immutable record of a state change inside a workflow aggregate.

    Attributes:
        workflow_id (str): Aggregate the change happened in.
        occurred_at (datetime): When the change was applied.
        event_id (str): Unique event ID (UUID4), usable for de-duplication downstream.
    """

    event_type: ClassVar[str] = "DomainEvent"

    workflow_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid4()))

    def payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "workflow_id": self.workflow_id,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload(),
        }


@dataclass(frozen=True, kw_only=True)
class WorkflowCreated(DomainEvent):
    event_type: ClassVar[str] = "WorkflowCreated"

    name: str

    def payload(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass(frozen=True, kw_only=True)
class WorkflowRenamed(DomainEvent):
    event_type: ClassVar[str] = "WorkflowRenamed"

    old_name: str
    new_name: str

    def payload(self) -> dict[str, Any]:
        return {"old_name": self.old_name, "new_name": self.new_name}


@dataclass(frozen=True, kw_only=True)
class WorkflowMetadataUpdated(DomainEvent):
    event_type: ClassVar[str] = "WorkflowMetadataUpdated"

    changed_fields: tuple[str, ...]

    def payload(self) -> dict[str, Any]:
        return {"changed_fields": list(self.changed_fields)}


@dataclass(frozen=True, kw_only=True)
class NodeAdded(DomainEvent):
    event_type: ClassVar[str] = "NodeAdded"

    node_id: str
    node_type: str

    def payload(self) -> dict[str, Any]:
        return {"node_id": self.node_id, "node_type": self.node_type}


@dataclass(frozen=True, kw_only=True)
class NodeRemoved(DomainEvent):
    event_type: ClassVar[str] = "NodeRemoved"

    node_id: str

    def payload(self) -> dict[str, Any]:
        return {"node_id": self.node_id}


@dataclass(frozen=True, kw_only=True)
class NodeUpdated(DomainEvent):
    event_type: ClassVar[str] = "NodeUpdated"

    node_id: str
    changed_fields: tuple[str, ...]

    def payload(self) -> dict[str, Any]:
        return {"node_id": self.node_id, "changed_fields": list(self.changed_fields)}


@dataclass(frozen=True, kw_only=True)
class ConnectionAdded(DomainEvent):
    event_type: ClassVar[str] = "ConnectionAdded"

    connection: Connection

    def payload(self) -> dict[str, Any]:
        return {"connection": self.connection.to_dict()}


@dataclass(frozen=True, kw_only=True)
class ConnectionRemoved(DomainEvent):
    event_type: ClassVar[str] = "ConnectionRemoved"

    connection: Connection

    def payload(self) -> dict[str, Any]:
        return {"connection": self.connection.to_dict()}


@dataclass(frozen=True, kw_only=True)
class WorkflowActivated(DomainEvent):
    event_type: ClassVar[str] = "WorkflowActivated"


@dataclass(frozen=True, kw_only=True)
class WorkflowDeactivated(DomainEvent):
    event_type: ClassVar[str] = "WorkflowDeactivated"


@dataclass(frozen=True, kw_only=True)
class WorkflowDuplicated(DomainEvent):
    event_type: ClassVar[str] = "WorkflowDuplicated"

    source_workflow_id: str

    def payload(self) -> dict[str, Any]:
        return {"source_workflow_id": self.source_workflow_id}


@dataclass(frozen=True, kw_only=True)
class WorkflowDeleted(DomainEvent):
    event_type: ClassVar[str] = "WorkflowDeleted"


EVENT_TYPES: dict[str, type[DomainEvent]] = {
    cls.event_type: cls
    for cls in (
        WorkflowCreated,
        WorkflowRenamed,
        WorkflowMetadataUpdated,
        NodeAdded,
        NodeRemoved,
        NodeUpdated,
        ConnectionAdded,
        ConnectionRemoved,
        WorkflowActivated,
        WorkflowDeactivated,
        WorkflowDuplicated,
        WorkflowDeleted,
    )
}
