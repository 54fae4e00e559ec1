import asyncio
import time
from uuid import uuid4

import redis.asyncio as redis

from src.ports.secondary.workflow_lock import IWorkflowLock
from src.shared.config import settings


class RedisWorkflowLock(IWorkflowLock):
    """
    Distributed per-workflow lock (SET NX EX).

    The TTL bounds how long a crashed holder can block a workflow; the holder
    token makes release a no-op for a lock that expired and was re-taken.
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    end
    return 0
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        ttl_seconds: int | None = None,
        acquire_timeout_seconds: float | None = None,
        poll_interval_seconds: float | None = None,
    ):
        self._redis = redis_client
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.LOCK_TTL_SECONDS
        self._timeout = (
            acquire_timeout_seconds
            if acquire_timeout_seconds is not None
            else settings.LOCK_ACQUIRE_TIMEOUT_SECONDS
        )
        self._poll_interval = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else settings.LOCK_POLL_INTERVAL_SECONDS
        )
        self._tokens: dict[str, str] = {}

    @staticmethod
    def _key(workflow_id: str) -> str:
        return f"lock:workflow:{workflow_id}"

    async def acquire(self, workflow_id: str) -> bool:
        token = str(uuid4())
        deadline = time.monotonic() + self._timeout
        while True:
            if await self._redis.set(self._key(workflow_id), token, nx=True, ex=self._ttl):
                self._tokens[workflow_id] = token
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self._poll_interval)

    async def release(self, workflow_id: str) -> None:
        token = self._tokens.pop(workflow_id, None)
        if token is None:
            return
        await self._redis.eval(self.RELEASE_SCRIPT, 1, self._key(workflow_id), token)
