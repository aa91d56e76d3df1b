"""
InfluxDB HTTP Client Library

Query/write client for the InfluxDB 1.x HTTP API with line-protocol encoding
and an asyncio worker pool that coalesces pending writes into one request.

Usage:
    from influx_client import InfluxDB, AInfluxDB, Point, new_config

    # Sync client
    db = InfluxDB({"host": "db1", "database": "metrics"})
    db.write([Point(measurement="cpu", tags={"host": "a"}, fields={"load": 0.5})])

    # Pooled async writes
    registry = PoolRegistry()
    registry.build_pools(batch_processing_fun())
    async with registry:
        await write_async(new_config({"database": "metrics"}), points, registry=registry)
"""

from .config import ConnectionDescriptor, new_config
from .client import InfluxDB, query, write
from .aclient import AInfluxDB, BatchRoutingPolicy, batch_processing_fun, write_async
from .errors import (
    BadRequest,
    ContractViolation,
    InfluxOperationalError,
    NotFound,
    PoolUnavailable,
    ServerError,
    TimeoutExceeded,
    TransportFailure,
)
from .line import encode
from .models import (
    AsyncWriteJob,
    DispatchOutcome,
    Point,
    QueryOptions,
    Result,
    Series,
    StatementResult,
    TimeUnit,
    WriteOptions,
)

__version__ = "1.0.0"
__all__ = [
    "InfluxDB",
    "AInfluxDB",
    "ConnectionDescriptor",
    "new_config",
    "query",
    "write",
    "write_async",
    "batch_processing_fun",
    "BatchRoutingPolicy",
    "encode",
    "Point",
    "TimeUnit",
    "QueryOptions",
    "WriteOptions",
    "AsyncWriteJob",
    "DispatchOutcome",
    "Result",
    "Series",
    "StatementResult",
    "InfluxOperationalError",
    "NotFound",
    "ServerError",
    "BadRequest",
    "ContractViolation",
    "PoolUnavailable",
    "TimeoutExceeded",
    "TransportFailure",
]
