from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CreateWorkflow:
    name: str
    nodes: tuple[dict[str, Any], ...] = ()
    connections: tuple[dict[str, Any], ...] = ()
    description: str = ""
    settings: dict[str, Any] = field(default_factory=dict)
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class RenameWorkflow:
    workflow_id: str
    name: str


@dataclass(frozen=True)
class UpdateWorkflowMetadata:
    workflow_id: str
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AddNode:
    workflow_id: str
    node: dict[str, Any]


@dataclass(frozen=True)
class RemoveNode:
    workflow_id: str
    node_id: str


@dataclass(frozen=True)
class UpdateNode:
    workflow_id: str
    node_id: str
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AddConnection:
    workflow_id: str
    source_node_id: str
    target_node_id: str
    source_output: str = "main"
    target_input: str = "main"
    kind: str = "main"


@dataclass(frozen=True)
class RemoveConnection:
    workflow_id: str
    source_node_id: str
    target_node_id: str
    source_output: str | None = None
    target_input: str | None = None
    kind: str | None = None


@dataclass(frozen=True)
class ActivateWorkflow:
    workflow_id: str


@dataclass(frozen=True)
class DeactivateWorkflow:
    workflow_id: str


@dataclass(frozen=True)
class DuplicateWorkflow:
    workflow_id: str
    name: str


@dataclass(frozen=True)
class DeleteWorkflow:
    workflow_id: str


WorkflowCommand = (
    CreateWorkflow
    | RenameWorkflow
    | UpdateWorkflowMetadata
    | AddNode
    | RemoveNode
    | UpdateNode
    | AddConnection
    | RemoveConnection
    | ActivateWorkflow
    | DeactivateWorkflow
    | DuplicateWorkflow
    | DeleteWorkflow
)

# Commands that edit the graph; subject to the deactivate-before-edit policy
STRUCTURAL_COMMANDS = (AddNode, RemoveNode, UpdateNode, AddConnection, RemoveConnection)
