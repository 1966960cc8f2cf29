"""
Tests for KeyedLocks.
"""

import asyncio

from studynest.services.locks import KeyedLocks


async def test_same_key_serialises():
    locks = KeyedLocks()
    order = []

    async def worker(tag):
        async with locks.hold(("file", "Math101", "notes.pdf")):
            order.append(f"{tag}-in")
            await asyncio.sleep(0.01)
            order.append(f"{tag}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


async def test_different_keys_do_not_block():
    locks = KeyedLocks()
    entered = asyncio.Event()

    async def holder():
        async with locks.hold("one"):
            await entered.wait()

    task = asyncio.create_task(holder())
    await asyncio.sleep(0)
    async with locks.hold("two"):
        entered.set()
    await task


async def test_locks_are_released_after_use():
    locks = KeyedLocks()
    async with locks.hold("k"):
        assert len(locks) == 1
    assert len(locks) == 0
