import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator


class TenantRWLock:
    """Async readers/writer lock guarding one tenant's data.

    Lead writes share the read side; config replaces and stage-set
    changes take the write side.  A waiting writer blocks new readers so
    a full rescan cannot be starved by a stream of lead updates.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._waiting_writers == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._waiting_writers -= 1
                # Readers held back by this writer must re-check
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer


class TenantLockRegistry:
    """Hands out one :class:`TenantRWLock` per tenant id.

    Locks are held weakly: once no request references a tenant's lock it
    carries no readers or writer and is dropped, so the registry only
    grows with the number of tenants active at the same time.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, TenantRWLock]" = (
            weakref.WeakValueDictionary()
        )

    def for_tenant(self, tenant_id: str) -> TenantRWLock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = TenantRWLock()
            self._locks[tenant_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry used by the API dependencies
tenant_locks = TenantLockRegistry()
