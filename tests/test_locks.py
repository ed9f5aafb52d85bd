import asyncio
import gc

import pytest

from app.core.locks import TenantLockRegistry, TenantRWLock


class TestTenantRWLock:
    @pytest.mark.asyncio
    async def test_readers_share(self):
        lock = TenantRWLock()
        async with lock.read():
            async with lock.read():
                assert lock.readers == 2
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_waits_for_readers(self):
        lock = TenantRWLock()
        events = []

        async def writer():
            async with lock.write():
                events.append("write")

        async with lock.read():
            task = asyncio.create_task(writer())
            await asyncio.sleep(0)
            assert events == []
            events.append("read-done")
        await task
        assert events == ["read-done", "write"]

    @pytest.mark.asyncio
    async def test_waiting_writer_blocks_new_readers(self):
        lock = TenantRWLock()
        events = []

        async def writer():
            async with lock.write():
                events.append("write")

        async def late_reader():
            async with lock.read():
                events.append("late-read")

        async with lock.read():
            writer_task = asyncio.create_task(writer())
            await asyncio.sleep(0)
            reader_task = asyncio.create_task(late_reader())
            await asyncio.sleep(0)
            assert events == []
        await asyncio.gather(writer_task, reader_task)
        assert events == ["write", "late-read"]

    @pytest.mark.asyncio
    async def test_writer_released_on_error(self):
        lock = TenantRWLock()
        with pytest.raises(RuntimeError):
            async with lock.write():
                raise RuntimeError("boom")
        assert lock.writer_active is False
        async with lock.read():
            assert lock.readers == 1


class TestTenantLockRegistry:
    def test_same_tenant_same_lock(self):
        registry = TenantLockRegistry()
        assert registry.for_tenant("a") is registry.for_tenant("a")

    def test_tenants_are_independent(self):
        registry = TenantLockRegistry()
        assert registry.for_tenant("a") is not registry.for_tenant("b")

    def test_idle_locks_are_released(self):
        registry = TenantLockRegistry()
        for index in range(100):
            registry.for_tenant(f"tenant-{index}")
        gc.collect()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_held_lock_is_shared_until_released(self):
        registry = TenantLockRegistry()
        async with registry.for_tenant("a").read():
            gc.collect()
            assert len(registry) == 1
            assert registry.for_tenant("a").readers == 1
        gc.collect()
        assert len(registry) == 0
