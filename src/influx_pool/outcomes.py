"""
Batch outcome events for worker pools.

Writes dispatched through a pool are fire-and-forget: the producer never
learns whether its job was written. Workers publish one ``BatchOutcome`` per
merged batch on the pool's ``OutcomeBus`` so that pool-level code (alerting,
dead-letter sinks, tests) can observe failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from loguru import logger


@dataclass(frozen=True)
class BatchOutcome:
    """Immutable record of one merged batch.

    Attributes:
        pool: Name of the pool the worker belongs to
        worker: Worker name (``<pool>-<index>``)
        jobs: Number of jobs merged into the request
        result: Whatever the batch handler returned (None if it raised)
        error: Exception raised by the batch handler, if any
        latency: Seconds spent in the handler
    """

    pool: str
    worker: str
    jobs: int
    result: Any = None
    error: Optional[BaseException] = None
    latency: float = 0.0

    @property
    def succeeded(self) -> bool:
        # handler results expose ``ok``; anything else counts as success
        return self.error is None and bool(getattr(self.result, "ok", True))


class OutcomeSubscriber(Protocol):
    async def __call__(self, outcome: BatchOutcome) -> None: ...


class OutcomeBus:
    """In-process pub/sub for batch outcomes.

    Subscribers are called in registration order. One subscriber's failure is
    logged and does not affect the others or the worker.

    Example:
        async def on_outcome(o: BatchOutcome):
            if not o.succeeded:
                dead_letters.append(o)

        pool.outcomes.subscribe(on_outcome)
    """

    def __init__(self) -> None:
        self._subs: list[OutcomeSubscriber] = []

    def subscribe(self, callback: OutcomeSubscriber) -> None:
        if callback not in self._subs:
            self._subs.append(callback)
            logger.debug(f"Outcome subscriber added (total: {len(self._subs)})")

    def unsubscribe(self, callback: OutcomeSubscriber) -> None:
        """No-op if callback was never subscribed."""
        try:
            self._subs.remove(callback)
        except ValueError:
            pass

    async def publish(self, outcome: BatchOutcome) -> None:
        if not self._subs:
            return

        for callback in list(self._subs):
            try:
                await callback(outcome)
            except Exception as exc:
                logger.warning(
                    f"Outcome subscriber error (ignored): {type(exc).__name__}: {exc}"
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)
