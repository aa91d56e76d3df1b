from __future__ import annotations

import asyncio
from time import monotonic
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from loguru import logger

from .mailbox import Mailbox, MailboxFull
from .metrics import BATCH_JOBS, BATCH_WRITE_LATENCY, BATCH_WRITES_TOTAL
from .outcomes import BatchOutcome, OutcomeBus

T = TypeVar("T")
BatchHandler = Callable[[Sequence[T]], Awaitable[Any]]

_CANCEL_ATTEMPTS = 50
_CANCEL_WAIT = 0.1


class PoolWorker(Generic[T]):
    """
    One pool worker: a mailbox plus an asyncio task that merges queued jobs.

    The task waits for a first job, then keeps collecting until ``batch_size``
    jobs are in hand or ``flush_interval`` seconds have passed, and calls the
    batch handler once for the whole batch. At most one batch is in flight.
    """

    def __init__(
        self,
        pool_name: str,
        index: int,
        handler: BatchHandler,
        *,
        capacity: int,
        batch_size: int,
        flush_interval: float,
        outcomes: Optional[OutcomeBus] = None,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if flush_interval <= 0:
            raise ValueError("flush_interval must be > 0")
        self.pool_name = pool_name
        self.name = f"{pool_name}-{index}"
        self._handler = handler
        self._mailbox: Mailbox[T] = Mailbox(capacity)
        self._batch_size = batch_size
        self._flush_interval = flush_interval
        self._outcomes = outcomes
        self._task: Optional[asyncio.Task] = None
        self._stopping = False

        self.received = 0
        self.batches = 0

    @property
    def alive(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopping

    @property
    def available(self) -> bool:
        return self.alive and not self._mailbox.full

    @property
    def queued(self) -> int:
        return self._mailbox.size

    @property
    def capacity(self) -> int:
        return self._mailbox.capacity

    def send(self, job: T) -> bool:
        """Fire-and-forget handoff. False if the worker is stopping or its mailbox is full."""
        if not self.alive:
            return False
        try:
            self._mailbox.put_nowait(job)
        except MailboxFull:
            return False
        self.received += 1
        return True

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._stopping = False
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self, drain: bool = True, timeout: Optional[float] = None) -> None:
        """Stop the worker; with ``drain`` queued jobs are flushed first."""
        self._stopping = True
        task = self._task
        if task is None or task.done():
            return
        if drain:
            done, _ = await asyncio.wait({task}, timeout=timeout)
            if done:
                return
            logger.warning(f"{self.name}: drain timed out, {self.queued} job(s) dropped")
        elif self.queued:
            logger.warning(f"{self.name}: stopping without drain, {self.queued} job(s) dropped")
        await self._cancel(task)

    async def _cancel(self, task: asyncio.Task) -> None:
        # a cancel can be lost if it lands while an await is completing, so re-deliver it
        for _ in range(_CANCEL_ATTEMPTS):
            if task.done():
                break
            task.cancel()
            await asyncio.wait({task}, timeout=_CANCEL_WAIT)
        if not task.done():
            logger.error(f"{self.name}: task did not stop after cancellation, abandoning it")
        elif not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error(f"{self.name}: task failed")

    async def _run(self) -> None:
        while True:
            if self._stopping and self._mailbox.size == 0:
                return
            try:
                first = await self._mailbox.get(timeout=self._flush_interval)
            except asyncio.TimeoutError:
                continue

            batch = [first]
            deadline = monotonic() + self._flush_interval
            while len(batch) < self._batch_size:
                batch.extend(self._mailbox.drain(self._batch_size - len(batch)))
                remaining = deadline - monotonic()
                if len(batch) >= self._batch_size or remaining <= 0 or self._stopping:
                    break
                try:
                    batch.append(await self._mailbox.get(timeout=remaining))
                except asyncio.TimeoutError:
                    break

            await self._flush(batch)

    async def _flush(self, batch: list[T]) -> None:
        t0 = monotonic()
        result: Any = None
        error: Optional[Exception] = None
        try:
            result = await self._handler(batch)
        except Exception as exc:
            error = exc
            logger.opt(exception=exc).error(
                f"{self.name}: batch handler crashed on {len(batch)} job(s)"
            )

        outcome = BatchOutcome(
            pool=self.pool_name,
            worker=self.name,
            jobs=len(batch),
            result=result,
            error=error,
            latency=monotonic() - t0,
        )
        self.batches += 1

        label = "ok" if outcome.succeeded else ("crashed" if error else "error")
        BATCH_WRITES_TOTAL.labels(self.pool_name, label).inc()
        BATCH_JOBS.labels(self.pool_name).observe(len(batch))
        BATCH_WRITE_LATENCY.labels(self.pool_name).observe(outcome.latency)
        if label == "error":
            logger.warning(
                f"{self.name}: batch write of {len(batch)} job(s) failed: "
                f"{getattr(result, 'error', result)!r}"
            )
        else:
            logger.debug(f"{self.name}: flushed {len(batch)} job(s) in {outcome.latency:.3f}s")

        if self._outcomes is not None:
            await self._outcomes.publish(outcome)
