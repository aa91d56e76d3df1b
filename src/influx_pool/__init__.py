"""Worker pools for asynchronous, batched InfluxDB writes.

- Mailbox: bounded per-worker inbox (non-blocking handoff)
- PoolWorker: size/time batcher calling one handler per batch
- WorkerPool: named worker set with health and lifecycle
- PoolRegistry / PoolKey: per-application, per-database pool routing
- OutcomeBus: observation channel for fire-and-forget batch results
- Prometheus metrics and env-based settings
"""

from .mailbox import Mailbox, MailboxFull
from .outcomes import BatchOutcome, OutcomeBus
from .pool import PoolHealth, WorkerPool
from .routing import (
    DEFAULT_POOL,
    DEFAULT_POOL_NAME,
    NoSuchPool,
    PoolKey,
    PoolRegistry,
    application_context,
    calling_application,
)
from .settings import PoolRuntimeSettings, get_pool_settings
from .worker import BatchHandler, PoolWorker

__all__ = [
    # runtime
    "Mailbox",
    "MailboxFull",
    "PoolWorker",
    "BatchHandler",
    "WorkerPool",
    "PoolHealth",
    # routing
    "PoolKey",
    "PoolRegistry",
    "NoSuchPool",
    "DEFAULT_POOL",
    "DEFAULT_POOL_NAME",
    "application_context",
    "calling_application",
    # observation
    "BatchOutcome",
    "OutcomeBus",
    "PoolRuntimeSettings",
    "get_pool_settings",
]
