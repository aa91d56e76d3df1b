"""
Pool resolution and the pool registry.

A pool is identified by a ``PoolKey``. Every write is routed to the shared
default pool unless the calling application's entry in the ``app_pools``
table names a dedicated pool for the target database:

    app_pools = {
        "billing": {                      # calling application
            "influxdb_pool": {            # default pool's sub-config
                "invoices": {"size": 2},  # database -> dedicated pool overrides
            },
        },
    }

The calling application is an ambient per-context value (see
``application_context``), not an argument threaded through every call.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from loguru import logger

from .outcomes import OutcomeBus
from .pool import WorkerPool
from .settings import PoolRuntimeSettings
from .worker import BatchHandler

DEFAULT_POOL_NAME = "influxdb_pool"

AppPools = Mapping[str, Mapping[str, Mapping[str, Mapping[str, Any]]]]

_calling_application: ContextVar[Optional[str]] = ContextVar(
    "influx_calling_application", default=None
)


def calling_application() -> Optional[str]:
    """Application identity for the current context, or None if unknown."""
    return _calling_application.get()


@contextmanager
def application_context(name: Optional[str]) -> Iterator[None]:
    token = _calling_application.set(name)
    try:
        yield
    finally:
        _calling_application.reset(token)


class NoSuchPool(LookupError):
    """The resolved pool key has no registered pool."""

    pass


@dataclass(frozen=True)
class PoolKey:
    application: Optional[str] = None
    database: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.application is None or self.database is None

    @property
    def name(self) -> str:
        if self.is_default:
            return DEFAULT_POOL_NAME
        return f"{self.application}_{self.database}_pool"


DEFAULT_POOL = PoolKey()


class PoolRegistry:
    """
    Explicit, injected replacement for a process-wide pool table.

    Built once at startup, started/stopped with the application, and only
    read by dispatch in between.
    """

    def __init__(
        self,
        app_pools: Optional[AppPools] = None,
        pools: Optional[Mapping[PoolKey, WorkerPool]] = None,
    ):
        self._app_pools: dict[str, dict[str, dict[str, dict[str, Any]]]] = {
            app: {
                pool: {db: dict(ovr or {}) for db, ovr in dbs.items()}
                for pool, dbs in sub.items()
            }
            for app, sub in (app_pools or {}).items()
        }
        self._pools: dict[PoolKey, WorkerPool] = {}
        for key, pool in (pools or {}).items():
            self.register(pool, key)

    # ---------- resolution ----------

    def resolve(self, application: Optional[str], database: Optional[str]) -> PoolKey:
        if application is None:
            return DEFAULT_POOL
        app_entry = self._app_pools.get(application)
        if app_entry is None:
            return DEFAULT_POOL
        db_entries = app_entry.get(DEFAULT_POOL_NAME)
        if db_entries is None:
            return DEFAULT_POOL
        if database is None or database not in db_entries:
            return DEFAULT_POOL
        return PoolKey(application, database)

    def dedicated_keys(self) -> list[PoolKey]:
        return [
            PoolKey(app, db)
            for app, sub in self._app_pools.items()
            for db in sub.get(DEFAULT_POOL_NAME, {})
        ]

    # ---------- pools ----------

    def register(self, pool: WorkerPool, key: PoolKey = DEFAULT_POOL) -> None:
        if key in self._pools:
            raise ValueError(f"pool already registered for {key.name}")
        self._pools[key] = pool

    def get(self, key: PoolKey) -> WorkerPool:
        try:
            return self._pools[key]
        except KeyError:
            raise NoSuchPool(key.name) from None

    def pool_for(self, application: Optional[str], database: Optional[str]) -> WorkerPool:
        return self.get(self.resolve(application, database))

    @property
    def pools(self) -> dict[PoolKey, WorkerPool]:
        return dict(self._pools)

    def build_pools(
        self,
        handler: BatchHandler,
        settings: Optional[PoolRuntimeSettings] = None,
        *,
        outcomes: Optional[OutcomeBus] = None,
    ) -> None:
        """Create the default pool and one dedicated pool per ``app_pools`` entry.

        Each database mapping overrides the runtime settings for its pool
        (e.g. ``{"size": 2, "batch_size": 500}``).
        """
        bus = outcomes or OutcomeBus()
        if DEFAULT_POOL not in self._pools:
            self.register(
                WorkerPool.from_settings(DEFAULT_POOL_NAME, handler, settings, outcomes=bus)
            )
        for key in self.dedicated_keys():
            if key in self._pools:
                continue
            overrides = self._app_pools[key.application][DEFAULT_POOL_NAME][key.database]
            pool = WorkerPool.from_settings(key.name, handler, settings, outcomes=bus, **overrides)
            self.register(pool, key)
            logger.debug(f"Dedicated pool {key.name} configured: {overrides}")

    # ---------- lifecycle ----------

    async def start(self) -> None:
        await asyncio.gather(*(p.start() for p in self._pools.values()))

    async def stop(self, drain: bool = True) -> None:
        await asyncio.gather(*(p.stop(drain=drain) for p in self._pools.values()))

    async def __aenter__(self) -> "PoolRegistry":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop(drain=True)
