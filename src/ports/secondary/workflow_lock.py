from abc import ABC, abstractmethod


class IWorkflowLock(ABC):
    """
    Per-workflow mutual exclusion so only one command mutates an aggregate at a time.
    """

    @abstractmethod
    async def acquire(self, workflow_id: str) -> bool:
        """Waits up to the configured timeout; returns False if the lock could not be taken."""
        pass

    @abstractmethod
    async def release(self, workflow_id: str) -> None:
        pass
