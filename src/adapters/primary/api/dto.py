from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.application.workflow.use_cases.workflow_commands import CommandResult
from src.domain.workflow.entities.workflow import Workflow
from src.domain.workflow.value_objects.connection import ConnectionKind


class CamelModel(BaseModel):
    """JSON bodies use camelCase keys; Python code uses the snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodePositionDTO(CamelModel):
    x: float = 0.0
    y: float = 0.0


class NodeDTO(CamelModel):
    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    name: str | None = None
    position: NodePositionDTO = Field(default_factory=NodePositionDTO)
    parameters: dict[str, Any] = Field(default_factory=dict)
    disabled: bool = False
    notes: str = ""


class ConnectionDTO(CamelModel):
    source_node_id: str = Field(..., min_length=1)
    target_node_id: str = Field(..., min_length=1)
    source_output: str = "main"
    target_input: str = "main"
    kind: ConnectionKind = ConnectionKind.MAIN


class WorkflowCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    nodes: list[NodeDTO] = Field(default_factory=list)
    connections: list[ConnectionDTO] = Field(default_factory=list)


class WorkflowRenameRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class WorkflowMetadataRequest(CamelModel):
    description: str | None = None
    settings: dict[str, Any] | None = None
    tags: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class WorkflowDuplicateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class NodeUpdateRequest(CamelModel):
    name: str | None = None
    position: NodePositionDTO | None = None
    parameters: dict[str, Any] | None = None
    disabled: bool | None = None
    notes: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class WorkflowResponse(CamelModel):
    id: str
    name: str
    active: bool
    nodes: list[NodeDTO]
    connections: list[ConnectionDTO]
    description: str
    settings: dict[str, Any]
    tags: list[str]
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_domain(cls, workflow: Workflow) -> "WorkflowResponse":
        return cls.model_validate(workflow.to_dict())


class DomainEventResponse(CamelModel):
    event_id: str
    event_type: str
    workflow_id: str
    occurred_at: datetime
    payload: dict[str, Any]


class CommandResponse(CamelModel):
    workflow: WorkflowResponse
    events: list[DomainEventResponse]

    @classmethod
    def from_result(cls, result: CommandResult) -> "CommandResponse":
        return cls(
            workflow=WorkflowResponse.from_domain(result.workflow),
            events=[DomainEventResponse.model_validate(event.to_dict()) for event in result.events],
        )


class ErrorBody(BaseModel):
    message: str
    error_code: str
    context: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: ErrorBody
