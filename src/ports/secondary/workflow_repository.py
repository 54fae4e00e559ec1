from abc import ABC, abstractmethod

from src.domain.workflow.entities.workflow import Workflow


class IWorkflowRepository(ABC):
    """
    Interface for persistence of Workflow aggregates.

    Load/save is atomic per call; serializing concurrent commands on the same
    workflow is the caller's job (see IWorkflowLock).
    """

    @abstractmethod
    async def save(self, workflow: Workflow) -> None:
        """Upserts the workflow by ID. Raises PersistenceError on storage failure."""
        pass

    @abstractmethod
    async def get_by_id(self, workflow_id: str) -> Workflow | None:
        """Retrieves a workflow by its unique ID, or None when it does not exist."""
        pass

    @abstractmethod
    async def delete(self, workflow_id: str) -> None:
        """Deletes a workflow. Raises WorkflowNotFoundError when it does not exist."""
        pass

    @abstractmethod
    async def list_all(self, active: bool | None = None) -> list[Workflow]:
        """Lists workflows, most recently updated first, optionally filtered by active flag."""
        pass
