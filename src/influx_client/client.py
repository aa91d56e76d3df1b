from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from .config import ConfigLike, ConnectionDescriptor, coerce_config, to_text
from .http import HttpTransport, RequestKind
from .line import PointLike, encode
from .models import QueryOptions, Result, WriteOptions, coerce_options
from .urls import encode_query, query_url, write_url

QUERY_CONTENT_TYPE = "application/x-www-form-urlencoded"
WRITE_CONTENT_TYPE = "application/octet-stream"

QueryText = Union[str, bytes]
OptionsLike = Union[QueryOptions, Mapping[str, Any], None]


def _param_value(value: Any) -> Any:
    # bytes-like parameters are sent as JSON strings, like the query text
    if isinstance(value, (bytes, bytearray, memoryview)):
        return to_text(value)
    return str(value)


@dataclass(frozen=True)
class PreparedRequest:
    """Everything a transport needs for one POST."""

    kind: RequestKind
    descriptor: ConnectionDescriptor
    url: str
    content_type: str
    body: bytes
    timeout: Optional[float]

    def args(self) -> tuple:
        d = self.descriptor
        return (
            self.kind,
            self.url,
            d.username,
            d.password,
            self.content_type,
            self.body,
            self.timeout,
        )


def prepare_query(
    config: ConfigLike,
    q: QueryText,
    parameters: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
) -> PreparedRequest:
    descriptor = coerce_config(config)
    opts = coerce_options(options, QueryOptions)
    text = to_text(q)
    url, _ = query_url(descriptor, text, opts)
    # bound parameters travel JSON-encoded next to the query text
    params = json.dumps(dict(parameters or {}), default=_param_value)
    body = encode_query({"q": text, "params": params})
    return PreparedRequest(
        "query", descriptor, url, QUERY_CONTENT_TYPE, body.encode(), opts.timeout
    )


def prepare_write(
    descriptor: ConnectionDescriptor, body: bytes, options: QueryOptions
) -> PreparedRequest:
    url, _ = write_url(descriptor, options)
    return PreparedRequest("write", descriptor, url, WRITE_CONTENT_TYPE, body, options.timeout)


def query(
    config: ConfigLike,
    q: QueryText,
    parameters: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
    *,
    transport: Optional[HttpTransport] = None,
) -> Result:
    """Run a query; returns Result(results=[...]) or Result(error=...)."""
    req = prepare_query(config, q, parameters, options)
    if transport is not None:
        return transport.post(*req.args())
    with HttpTransport() as t:
        return t.post(*req.args())


def write(
    config: ConfigLike,
    points: Iterable[PointLike],
    options: OptionsLike = None,
    *,
    transport: Optional[HttpTransport] = None,
) -> Result:
    """Encode and write points in one request; returns Result() on success."""
    opts = coerce_options(options, WriteOptions)
    req = prepare_write(coerce_config(config), encode(points), opts)
    if transport is not None:
        return transport.post(*req.args())
    with HttpTransport() as t:
        return t.post(*req.args())


class InfluxDB:
    """
    Synchronous client bound to one connection descriptor.

    Usage:
        with InfluxDB({"host": "db1", "database": "metrics"}) as db:
            db.write([Point(measurement="cpu", fields={"load": 0.5})])
            res = db.query("SELECT * FROM cpu")
    """

    def __init__(self, config: ConfigLike, transport: Optional[HttpTransport] = None):
        self._cfg = coerce_config(config)
        self._transport = transport or HttpTransport()

    @property
    def config(self) -> ConnectionDescriptor:
        return self._cfg

    def query(
        self,
        q: QueryText,
        parameters: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
    ) -> Result:
        return query(self._cfg, q, parameters, options, transport=self._transport)

    def write(self, points: Iterable[PointLike], options: OptionsLike = None) -> Result:
        return write(self._cfg, points, options, transport=self._transport)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "InfluxDB":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
