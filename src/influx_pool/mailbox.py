from __future__ import annotations

import asyncio
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class MailboxFull(Exception):
    """Raised by put_nowait when the mailbox is at capacity."""

    pass


class Mailbox(Generic[T]):
    """Bounded per-worker inbox. Producers never wait: a full mailbox rejects."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = capacity
        self._q: asyncio.Queue[T] = asyncio.Queue(maxsize=capacity)
        self._nonempty = asyncio.Event()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        return self._q.qsize()

    @property
    def full(self) -> bool:
        return self._q.full()

    def put_nowait(self, item: T) -> None:
        try:
            self._q.put_nowait(item)
        except asyncio.QueueFull:
            raise MailboxFull(f"mailbox full ({self._capacity})") from None
        self._nonempty.set()

    async def get(self, timeout: Optional[float] = None) -> T:
        """
        Wait for the next item; raises asyncio.TimeoutError after ``timeout`` seconds.

        Only the synchronous ``get_nowait`` takes an item, so a cancelled
        ``get`` always raises CancelledError and leaves the mailbox untouched.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._q.empty():
            self._nonempty.clear()
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                raise asyncio.TimeoutError()
            waiter = asyncio.ensure_future(self._nonempty.wait())
            try:
                await asyncio.wait({waiter}, timeout=remaining)
            finally:
                waiter.cancel()
        return self._q.get_nowait()

    def drain(self, max_items: int) -> list[T]:
        """Take up to ``max_items`` already-queued items without waiting."""
        out: list[T] = []
        while len(out) < max_items:
            try:
                out.append(self._q.get_nowait())
            except asyncio.QueueEmpty:
                break
        return out
