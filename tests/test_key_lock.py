"""
Тесты KeyedLockManager.
"""

import asyncio

import pytest

from context_relay.infrastructure.concurrency import KeyedLockManager


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLockManager()
    events = []

    async def worker(name):
        async with locks.lock("u"):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_different_keys_run_in_parallel():
    locks = KeyedLockManager()
    entered = asyncio.Event()

    async def holder():
        async with locks.lock("a"):
            assert locks.get_lock_count() >= 1
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def other():
        async with locks.lock("b"):
            entered.set()

    await asyncio.gather(holder(), other())


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = KeyedLockManager()

    with pytest.raises(RuntimeError):
        async with locks.lock("u"):
            raise RuntimeError("boom")

    assert locks.is_locked("u") is False
    assert locks.get_lock_count() == 0


@pytest.mark.asyncio
async def test_entries_dropped_when_last_user_leaves():
    locks = KeyedLockManager()
    for i in range(5):
        async with locks.lock(str(i)):
            assert locks.get_lock_count() == 1

    assert locks.get_lock_count() == 0


@pytest.mark.asyncio
async def test_waiter_and_late_caller_never_hold_key_together():
    locks = KeyedLockManager()
    holders = []
    overlaps = []
    b_holding = asyncio.Event()
    release_b = asyncio.Event()

    async def worker(name, hold_until=None, on_enter=None):
        async with locks.lock("k"):
            if holders:
                overlaps.append((name, list(holders)))
            holders.append(name)
            if on_enter:
                on_enter.set()
            if hold_until:
                await hold_until.wait()
            else:
                await asyncio.sleep(0.01)
            holders.remove(name)

    b = asyncio.create_task(worker("b", hold_until=release_b, on_enter=b_holding))
    await b_holding.wait()
    a = asyncio.create_task(worker("a"))
    await asyncio.sleep(0)

    release_b.set()
    await b
    c = asyncio.create_task(worker("c"))
    await asyncio.gather(a, c)

    assert overlaps == []
    assert locks.get_lock_count() == 0


@pytest.mark.asyncio
async def test_cancelled_waiter_releases_its_slot():
    locks = KeyedLockManager()
    holding = asyncio.Event()
    release = asyncio.Event()

    async def holder():
        async with locks.lock("k"):
            holding.set()
            await release.wait()

    async def waiter():
        async with locks.lock("k"):
            pass

    h = asyncio.create_task(holder())
    await holding.wait()
    w = asyncio.create_task(waiter())
    await asyncio.sleep(0)
    w.cancel()
    with pytest.raises(asyncio.CancelledError):
        await w

    release.set()
    await h
    assert locks.get_lock_count() == 0
