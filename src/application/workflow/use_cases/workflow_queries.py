from collections.abc import Awaitable, Callable

from src.application.workflow.queries import GetWorkflowById, ListWorkflows, WorkflowQuery
from src.domain.workflow.entities.workflow import Workflow
from src.domain.workflow.exceptions import ValidationError, WorkflowNotFoundError
from src.domain.workflow.value_objects.identifier import Identifier
from src.ports.secondary.workflow_repository import IWorkflowRepository


class WorkflowQueryService:
    """Read side: resolves queries straight from the repository, no locking."""

    def __init__(self, workflow_repository: IWorkflowRepository):
        self._workflow_repository = workflow_repository
        self._handlers: dict[type, Callable[..., Awaitable[Workflow | list[Workflow]]]] = {
            GetWorkflowById: self._get_by_id,
            ListWorkflows: self._list,
        }

    async def execute(self, query: WorkflowQuery) -> Workflow | list[Workflow]:
        handler = self._handlers.get(type(query))
        if handler is None:
            raise ValidationError(
                f"Unsupported query: {type(query).__name__}",
                {"query": type(query).__name__},
            )
        return await handler(query)

    async def _get_by_id(self, query: GetWorkflowById) -> Workflow:
        workflow_id = str(Identifier.parse(query.workflow_id))
        workflow = await self._workflow_repository.get_by_id(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    async def _list(self, query: ListWorkflows) -> list[Workflow]:
        return await self._workflow_repository.list_all(active=query.active)
