from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer
from loguru import logger

from influx_pool import BatchOutcome, PoolRegistry, PoolRuntimeSettings

from . import aclient
from .client import InfluxDB
from .config import new_config
from .errors import PoolUnavailable
from .line import coerce_point
from .models import DispatchOutcome, Result, TimeUnit
from .settings import get_settings
from .utils import iter_point_groups

app = typer.Typer(help="InfluxDB HTTP client CLI")

# ---------------------------
# Common options
# ---------------------------


def host_opt() -> Optional[str]:
    return typer.Option(None, "--host", help="Server host (default: INFLUX_HOST or localhost)")


def port_opt() -> Optional[int]:
    return typer.Option(None, "--port", help="Server port (default: INFLUX_PORT or 8086)")


def db_opt() -> Optional[str]:
    return typer.Option(None, "--db", help="Database (default: INFLUX_DATABASE)")


def precision_opt() -> Optional[TimeUnit]:
    return typer.Option(None, "--precision", case_sensitive=False, help="Timestamp precision")


def rp_opt() -> Optional[str]:
    return typer.Option(None, "--rp", help="Retention policy")


def timeout_opt() -> Optional[float]:
    return typer.Option(None, "--timeout", help="Request timeout in seconds (default: none)")


def _config(host: Optional[str], port: Optional[int], db: Optional[str]):
    cfg = get_settings().to_config()
    overrides = {"host": host, "port": port, "database": db}
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    return new_config(cfg)


def _options(**kwargs) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def _echo_result(res: Result) -> None:
    if not res.ok:
        typer.echo(
            json.dumps({"error": type(res.error).__name__, "message": str(res.error)}), err=True
        )
        raise typer.Exit(1)
    payload = [r.model_dump() for r in res.results] if res.results is not None else "ok"
    typer.echo(json.dumps({"results": payload}, default=str, indent=2))


# ---------------------------
# Query / sync write
# ---------------------------


@app.command("query")
def query_cmd(
    text: str = typer.Argument(..., help="Query text, e.g. 'SELECT * FROM cpu'"),
    host: Optional[str] = host_opt(),
    port: Optional[int] = port_opt(),
    db: Optional[str] = db_opt(),
    precision: Optional[TimeUnit] = precision_opt(),
    rp: Optional[str] = rp_opt(),
    timeout: Optional[float] = timeout_opt(),
):
    with InfluxDB(_config(host, port, db)) as client:
        res = client.query(
            text, options=_options(precision=precision, retention_policy=rp, timeout=timeout)
        )
    _echo_result(res)


@app.command("write")
def write_cmd(
    path: str = typer.Argument(..., help="NDJSON points file or '-' for stdin (.gz ok)"),
    host: Optional[str] = host_opt(),
    port: Optional[int] = port_opt(),
    db: Optional[str] = db_opt(),
    precision: Optional[TimeUnit] = precision_opt(),
    rp: Optional[str] = rp_opt(),
    timeout: Optional[float] = timeout_opt(),
    chunk_size: int = typer.Option(5000, "--chunk-size", help="Points per request"),
):
    opts = _options(precision=precision, retention_policy=rp, timeout=timeout)
    written = 0
    pending: list = []
    with InfluxDB(_config(host, port, db)) as client:
        for group in iter_point_groups(path):
            pending.extend(coerce_point(p) for p in group)
            if len(pending) >= chunk_size:
                _echo_on_error(client.write(pending, opts))
                written += len(pending)
                pending = []
        if pending:
            _echo_on_error(client.write(pending, opts))
            written += len(pending)
    typer.echo(json.dumps({"written": written}, indent=2))


def _echo_on_error(res: Result) -> None:
    if not res.ok:
        _echo_result(res)


# ---------------------------
# Pooled async write
# ---------------------------


@app.command("write-async")
def write_async_cmd(
    path: str = typer.Argument(..., help="NDJSON file; each line is one point or a list of points"),
    host: Optional[str] = host_opt(),
    port: Optional[int] = port_opt(),
    db: Optional[str] = db_opt(),
    precision: Optional[TimeUnit] = precision_opt(),
    rp: Optional[str] = rp_opt(),
    timeout: Optional[float] = timeout_opt(),
    workers: int = typer.Option(4, "--workers", help="Workers in the local pool"),
    batch_size: int = typer.Option(100, "--batch-size", help="Jobs merged per request"),
    flush_ms: int = typer.Option(500, "--flush-ms", help="Flush partial batches after N ms"),
):
    config = _config(host, port, db)
    opts = _options(precision=precision, retention_policy=rp, timeout=timeout)
    settings = PoolRuntimeSettings(
        size=workers, batch_size=batch_size, flush_interval=flush_ms / 1000.0
    )
    stats = {"dispatched": 0, "rejected": 0, "batches": 0, "failed_batches": 0}

    async def on_outcome(o: BatchOutcome) -> None:
        stats["batches"] += 1
        if not o.succeeded:
            stats["failed_batches"] += 1

    async def _run() -> None:
        registry = PoolRegistry()
        registry.build_pools(aclient.batch_processing_fun(), settings)
        for pool in registry.pools.values():
            pool.outcomes.subscribe(on_outcome)
        async with registry:
            for group in iter_point_groups(path):
                outcome = await aclient.write_async(config, group, opts, registry=registry)
                if outcome is DispatchOutcome.ENQUEUED:
                    stats["dispatched"] += 1
                else:
                    stats["rejected"] += 1

    try:
        asyncio.run(_run())
    except PoolUnavailable as e:
        logger.error(f"Dispatch failed: {e}")
        raise typer.Exit(1)
    typer.echo(json.dumps(stats, indent=2))
    if stats["failed_batches"]:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
