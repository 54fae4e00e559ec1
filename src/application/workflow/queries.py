from dataclasses import dataclass


@dataclass(frozen=True)
class GetWorkflowById:
    workflow_id: str


@dataclass(frozen=True)
class ListWorkflows:
    active: bool | None = None


WorkflowQuery = GetWorkflowById | ListWorkflows
