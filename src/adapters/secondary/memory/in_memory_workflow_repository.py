import copy

from src.domain.workflow.entities.workflow import Workflow
from src.domain.workflow.events.event_queue import DEFAULT_MAX_PENDING_EVENTS
from src.domain.workflow.exceptions import WorkflowNotFoundError
from src.ports.secondary.workflow_repository import IWorkflowRepository


class InMemoryWorkflowRepository(IWorkflowRepository):
    """
    Dict-backed repository for tests and single-process deployments.

    Stores snapshots rather than live aggregates, so a caller holding a loaded
    workflow can never change stored state without calling `save`.
    """

    def __init__(
        self,
        store: dict[str, dict] | None = None,
        max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS,
    ):
        self._store = store if store is not None else {}
        self._max_pending_events = max_pending_events

    async def save(self, workflow: Workflow) -> None:
        self._store[str(workflow.id)] = copy.deepcopy(workflow.to_dict())

    async def get_by_id(self, workflow_id: str) -> Workflow | None:
        snapshot = self._store.get(workflow_id)
        if snapshot is None:
            return None
        return Workflow.from_dict(copy.deepcopy(snapshot), self._max_pending_events)

    async def delete(self, workflow_id: str) -> None:
        if workflow_id not in self._store:
            raise WorkflowNotFoundError(workflow_id)
        del self._store[workflow_id]

    async def list_all(self, active: bool | None = None) -> list[Workflow]:
        workflows = [
            Workflow.from_dict(copy.deepcopy(snapshot), self._max_pending_events)
            for snapshot in self._store.values()
            if active is None or snapshot["active"] == active
        ]
        return sorted(workflows, key=lambda wf: wf.updated_at, reverse=True)
