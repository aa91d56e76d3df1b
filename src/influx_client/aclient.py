"""
Async query/write paths and the batched write pipeline.

``write_async`` resolves a worker pool for the calling application and
database, picks one available worker uniformly at random and hands it an
already-encoded ``AsyncWriteJob``. It returns as soon as the job is enqueued:
there is no channel back to the caller for the eventual write result. Those
results surface only through the pool (logs, metrics, ``OutcomeBus``).

``batch_processing_fun`` builds the handler that pool workers call with a
batch of jobs; it merges the batch into one write request.
"""

from __future__ import annotations

import asyncio
import random
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from loguru import logger

from influx_pool import NoSuchPool, PoolRegistry, calling_application
from influx_pool.metrics import DISPATCH_TOTAL

from .client import OptionsLike, QueryText, prepare_query, prepare_write
from .config import ConfigLike, ConnectionDescriptor, coerce_config
from .errors import ContractViolation, PoolUnavailable
from .http import AsyncHttpTransport
from .line import PointLike, encode
from .models import AsyncWriteJob, Batch, DispatchOutcome, Result, WriteOptions, coerce_options


class BatchRoutingPolicy(str, Enum):
    """How a batch whose jobs disagree on destination/options is written.

    FIRST_WINS: every job is written with the first job's descriptor and
    options (a warning is logged). REJECT_MIXED: the batch is refused.
    """

    FIRST_WINS = "first_wins"
    REJECT_MIXED = "reject_mixed"


async def _post(req, transport: Optional[AsyncHttpTransport]) -> Result:
    if transport is not None:
        return await transport.post(*req.args())
    async with AsyncHttpTransport() as t:
        return await t.post(*req.args())


async def query(
    config: ConfigLike,
    q: QueryText,
    parameters: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
    *,
    transport: Optional[AsyncHttpTransport] = None,
) -> Result:
    return await _post(prepare_query(config, q, parameters, options), transport)


async def write(
    config: ConfigLike,
    points: Iterable[PointLike],
    options: OptionsLike = None,
    *,
    transport: Optional[AsyncHttpTransport] = None,
) -> Result:
    opts = coerce_options(options, WriteOptions)
    return await _post(prepare_write(coerce_config(config), encode(points), opts), transport)


async def write_async(
    config: ConfigLike,
    points: Iterable[PointLike],
    options: OptionsLike = None,
    *,
    registry: PoolRegistry,
    application: Optional[str] = None,
) -> DispatchOutcome:
    """
    Hand a write to a pool worker without waiting for it to be written.

    Args:
        registry: Pools to dispatch into
        application: Calling application; defaults to ``calling_application()``

    Returns:
        ENQUEUED once the job is in a worker's mailbox, REJECTED if that
        mailbox filled up between selection and handoff.

    Raises:
        PoolUnavailable: no pool, no available worker, or the pool did not
            answer within ``get_worker_timeout``. Nothing is sent.
    """
    descriptor = coerce_config(config)
    opts = coerce_options(options, WriteOptions)
    app = application if application is not None else calling_application()

    try:
        pool = registry.pool_for(app, descriptor.database)
    except NoSuchPool as e:
        raise PoolUnavailable(f"pool {e} is not registered") from e

    try:
        workers = await pool.available_workers(timeout=opts.get_worker_timeout)
    except asyncio.TimeoutError as e:
        DISPATCH_TOTAL.labels(pool.name, "unavailable").inc()
        raise PoolUnavailable(
            f"pool {pool.name} did not answer within {opts.get_worker_timeout}s"
        ) from e
    if not workers:
        DISPATCH_TOTAL.labels(pool.name, "unavailable").inc()
        raise PoolUnavailable(f"pool {pool.name} has no available workers")

    job = AsyncWriteJob(descriptor=descriptor, body=encode(points), options=opts)
    worker = workers[random.randrange(len(workers))]
    if not worker.send(job):
        DISPATCH_TOTAL.labels(pool.name, DispatchOutcome.REJECTED.value).inc()
        logger.debug(f"{worker.name} rejected job ({len(job.body)} bytes)")
        return DispatchOutcome.REJECTED

    DISPATCH_TOTAL.labels(pool.name, DispatchOutcome.ENQUEUED.value).inc()
    logger.debug(f"Dispatched {len(job.body)} bytes to {worker.name}")
    return DispatchOutcome.ENQUEUED


def batch_processing_fun(
    transport: Optional[AsyncHttpTransport] = None,
    *,
    policy: BatchRoutingPolicy = BatchRoutingPolicy.FIRST_WINS,
) -> Callable[[Batch], Awaitable[Result]]:
    """
    Build the batch handler to register with worker pools.

    The handler writes a non-empty batch as exactly one request: routing and
    options come from the first job, bodies are concatenated in arrival order,
    and the single Result stands for the whole batch.
    """

    async def merge(batch: Batch) -> Result:
        if not batch:
            raise ContractViolation("cannot merge an empty batch")
        first = batch[0]
        mixed = sum(1 for job in batch if job.destination != first.destination)
        if mixed:
            if policy is BatchRoutingPolicy.REJECT_MIXED:
                raise ContractViolation(
                    f"{mixed} of {len(batch)} job(s) disagree with the batch destination"
                )
            logger.warning(
                f"{mixed} of {len(batch)} job(s) have a different destination; "
                f"writing all to {first.descriptor.host}:{first.descriptor.port} "
                f"db={first.descriptor.database}"
            )
        body = b"".join(job.body for job in batch)
        return await _post(prepare_write(first.descriptor, body, first.options), transport)

    return merge


class AInfluxDB:
    """
    Async client bound to one connection descriptor.

    Usage:
        registry = PoolRegistry()
        registry.build_pools(batch_processing_fun())
        async with registry, AInfluxDB({"database": "metrics"}, registry=registry) as db:
            await db.write_async(points)
            res = await db.query("SELECT * FROM cpu")
    """

    def __init__(
        self,
        config: ConfigLike,
        *,
        registry: Optional[PoolRegistry] = None,
        transport: Optional[AsyncHttpTransport] = None,
    ):
        self._cfg = coerce_config(config)
        self._registry = registry
        self._transport = transport or AsyncHttpTransport()

    @property
    def config(self) -> ConnectionDescriptor:
        return self._cfg

    async def query(
        self,
        q: QueryText,
        parameters: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
    ) -> Result:
        return await query(self._cfg, q, parameters, options, transport=self._transport)

    async def write(self, points: Iterable[PointLike], options: OptionsLike = None) -> Result:
        return await write(self._cfg, points, options, transport=self._transport)

    async def write_async(
        self, points: Iterable[PointLike], options: OptionsLike = None
    ) -> DispatchOutcome:
        if self._registry is None:
            raise PoolUnavailable("client was created without a pool registry")
        return await write_async(self._cfg, points, options, registry=self._registry)

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "AInfluxDB":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
