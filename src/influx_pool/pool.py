from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from loguru import logger

from .outcomes import OutcomeBus
from .settings import PoolRuntimeSettings, get_pool_settings
from .worker import BatchHandler, PoolWorker

T = TypeVar("T")


@dataclass(frozen=True)
class PoolHealth:
    name: str
    workers: int
    workers_alive: int
    workers_available: int
    queued: int
    capacity: int
    batches: int


class WorkerPool(Generic[T]):
    """
    Named set of workers that share one batch handler.

    The pool owns the batching trigger (``batch_size`` / ``flush_interval``)
    and calls ``handler(batch)`` for every assembled batch. Producers pick a
    worker from ``available_workers()`` and ``send`` to it directly.

    Usage:
        async with WorkerPool("influxdb_pool", merge, size=4) as pool:
            workers = await pool.available_workers(timeout=5.0)
            workers[0].send(job)
    """

    def __init__(
        self,
        name: str,
        handler: BatchHandler,
        *,
        size: int = 4,
        capacity: int = 1000,
        batch_size: int = 100,
        flush_interval: float = 0.5,
        stop_timeout: Optional[float] = 10.0,
        outcomes: Optional[OutcomeBus] = None,
    ):
        if size <= 0:
            raise ValueError("size must be > 0")
        self._name = name
        self._stop_timeout = stop_timeout
        self.outcomes = outcomes or OutcomeBus()
        self._workers: list[PoolWorker[T]] = [
            PoolWorker(
                name,
                i,
                handler,
                capacity=capacity,
                batch_size=batch_size,
                flush_interval=flush_interval,
                outcomes=self.outcomes,
            )
            for i in range(size)
        ]
        # start/stop hold this, so worker queries wait out lifecycle changes
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        name: str,
        handler: BatchHandler,
        settings: Optional[PoolRuntimeSettings] = None,
        **overrides,
    ) -> "WorkerPool[T]":
        s = settings or get_pool_settings()
        kwargs = s.model_dump()
        kwargs.update(overrides)
        return cls(name, handler, **kwargs)

    @property
    def name(self) -> str:
        return self._name

    @property
    def workers(self) -> list[PoolWorker[T]]:
        return list(self._workers)

    async def start(self) -> None:
        async with self._lock:
            for w in self._workers:
                w.start()
        logger.info(f"Pool {self._name} started with {len(self._workers)} worker(s)")

    async def stop(self, drain: bool = True, timeout: Optional[float] = None) -> None:
        timeout = self._stop_timeout if timeout is None else timeout
        async with self._lock:
            await asyncio.gather(*(w.stop(drain=drain, timeout=timeout) for w in self._workers))
        logger.info(f"Pool {self._name} stopped")

    async def __aenter__(self) -> "WorkerPool[T]":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop(drain=True)

    async def available_workers(self, timeout: Optional[float] = 5.0) -> list[PoolWorker[T]]:
        """
        Workers that are running and have mailbox room, in index order.

        Raises asyncio.TimeoutError if the pool cannot answer within ``timeout``
        seconds (e.g. while it is starting or stopping).
        """
        await asyncio.wait_for(self._lock.acquire(), timeout=timeout)
        try:
            return [w for w in self._workers if w.available]
        finally:
            self._lock.release()

    def health(self) -> PoolHealth:
        return PoolHealth(
            name=self._name,
            workers=len(self._workers),
            workers_alive=sum(1 for w in self._workers if w.alive),
            workers_available=sum(1 for w in self._workers if w.available),
            queued=sum(w.queued for w in self._workers),
            capacity=sum(w.capacity for w in self._workers),
            batches=sum(w.batches for w in self._workers),
        )
