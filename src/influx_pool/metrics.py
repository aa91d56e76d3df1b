"""
Prometheus metrics for async dispatch and batch writes.
Registered in the global REGISTRY on import.
"""

from prometheus_client import Counter, Histogram

DISPATCH_TOTAL = Counter(
    "influx_dispatch_total",
    "Async write jobs handed to a pool",
    ["pool", "outcome"],
)

BATCH_WRITES_TOTAL = Counter(
    "influx_batch_writes_total",
    "Merged batch writes issued by pool workers",
    ["pool", "outcome"],
)

BATCH_JOBS = Histogram(
    "influx_batch_jobs",
    "Jobs merged per batch",
    ["pool"],
    buckets=[1, 2, 5, 10, 25, 50, 100, 250, 500, 1000],
)

BATCH_WRITE_LATENCY = Histogram(
    "influx_batch_write_latency_seconds",
    "Time spent writing one merged batch",
    ["pool"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)
