import asyncio

from src.ports.secondary.workflow_lock import IWorkflowLock


class InMemoryWorkflowLock(IWorkflowLock):
    """asyncio.Lock per workflow ID; serializes commands within one process."""

    def __init__(self, acquire_timeout_seconds: float = 5.0):
        self._timeout = acquire_timeout_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        # holders + waiters per ID, so idle locks can be dropped
        self._users: dict[str, int] = {}

    async def acquire(self, workflow_id: str) -> bool:
        lock = self._locks.setdefault(workflow_id, asyncio.Lock())
        self._users[workflow_id] = self._users.get(workflow_id, 0) + 1
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._timeout)
        except asyncio.TimeoutError:
            self._forget(workflow_id)
            return False
        return True

    async def release(self, workflow_id: str) -> None:
        lock = self._locks.get(workflow_id)
        if lock is None or not lock.locked():
            return
        lock.release()
        self._forget(workflow_id)

    def is_locked(self, workflow_id: str) -> bool:
        lock = self._locks.get(workflow_id)
        return lock is not None and lock.locked()

    def _forget(self, workflow_id: str) -> None:
        remaining = self._users.get(workflow_id, 1) - 1
        if remaining <= 0:
            self._users.pop(workflow_id, None)
            self._locks.pop(workflow_id, None)
        else:
            self._users[workflow_id] = remaining
