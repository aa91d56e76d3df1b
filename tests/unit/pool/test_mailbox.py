"""
Unit tests for the per-worker Mailbox.
"""

import asyncio

import pytest

from influx_pool import Mailbox, MailboxFull


@pytest.mark.asyncio
async def test_put_until_full_then_reject():
    mb = Mailbox[int](capacity=3)
    for i in range(3):
        mb.put_nowait(i)
    assert mb.full
    with pytest.raises(MailboxFull):
        mb.put_nowait(99)
    assert mb.size == 3


@pytest.mark.asyncio
async def test_get_is_fifo_and_drain_takes_what_is_there():
    mb = Mailbox[int](capacity=10)
    for i in range(5):
        mb.put_nowait(i)
    assert await mb.get() == 0
    assert mb.drain(2) == [1, 2]
    assert mb.drain(10) == [3, 4]
    assert mb.drain(10) == []


@pytest.mark.asyncio
async def test_get_times_out():
    mb = Mailbox[int](capacity=1)
    with pytest.raises(asyncio.TimeoutError):
        await mb.get(timeout=0.01)


@pytest.mark.asyncio
async def test_get_wakes_on_put():
    mb = Mailbox[str](capacity=1)
    getter = asyncio.create_task(mb.get(timeout=1.0))
    await asyncio.sleep(0.01)
    mb.put_nowait("a")
    assert await getter == "a"
    assert mb.size == 0


@pytest.mark.asyncio
async def test_cancelled_get_raises_and_keeps_the_item():
    mb = Mailbox[str](capacity=1)
    getter = asyncio.create_task(mb.get(timeout=1.0))
    await asyncio.sleep(0.01)
    # item arrives in the same tick as the cancel
    mb.put_nowait("a")
    getter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await getter
    assert mb.size == 1
    assert await mb.get(timeout=0.1) == "a"


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        Mailbox(0)
