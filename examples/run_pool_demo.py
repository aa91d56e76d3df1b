"""
Demo script for pooled async writes.

Dispatches points through a local worker pool against a real server
(INFLUX_HOST / INFLUX_PORT / INFLUX_DATABASE) and reports batch outcomes.
"""

import asyncio
import time

from loguru import logger

from influx_client import Point, batch_processing_fun, new_config, write_async
from influx_client.http import AsyncHttpTransport
from influx_client.settings import get_settings
from influx_pool import BatchOutcome, PoolRegistry, PoolRuntimeSettings


async def on_outcome(o: BatchOutcome) -> None:
    if o.succeeded:
        logger.info(f"{o.worker} wrote {o.jobs} job(s) in {o.latency * 1000:.1f}ms")
    else:
        logger.warning(f"{o.worker} failed {o.jobs} job(s): {o.error or o.result.error}")


async def main():
    config = new_config(get_settings().to_config())
    async with AsyncHttpTransport() as transport:
        registry = PoolRegistry()
        registry.build_pools(
            batch_processing_fun(transport),
            PoolRuntimeSettings(size=2, batch_size=50, flush_interval=0.1),
        )
        for pool in registry.pools.values():
            pool.outcomes.subscribe(on_outcome)

        async with registry:
            logger.info("Dispatching 1,000 points")
            now = time.time_ns()
            for i in range(1_000):
                p = Point(
                    measurement="demo",
                    tags={"worker": str(i % 4)},
                    fields={"value": float(i)},
                    time=now + i,
                )
                await write_async(config, [p], registry=registry)

            for pool in registry.pools.values():
                h = pool.health()
                logger.info(f"{h.name}: queued={h.queued}/{h.capacity} batches={h.batches}")

    logger.info("Pool demo complete")


if __name__ == "__main__":
    asyncio.run(main())
