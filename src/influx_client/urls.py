"""
URL and query-string assembly for the /query and /write endpoints.

Wire names (``db``, ``epoch``, ``precision``, ``rp``, ``q``) and precision codes
are fixed by the server API.
"""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import quote, urlencode, urlunsplit

from .config import ConnectionDescriptor
from .models import QueryOptions, TimeUnit


def encode_query(params: Mapping[str, str]) -> str:
    """Percent-encode params in sorted key order (RFC 3986, spaces as %20)."""
    return urlencode(sorted(params.items()), quote_via=quote)


def encode_url(
    scheme: str, host: str, port: int, path: str, params: Optional[Mapping[str, str]] = None
) -> str:
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    query = encode_query(params) if params else ""
    return urlunsplit((scheme, f"{host}:{port}", quote(path, safe="/"), query, ""))


def query_params(
    descriptor: ConnectionDescriptor, options: QueryOptions, q: Optional[str] = None
) -> dict[str, str]:
    params = {"epoch": TimeUnit.NANOSECOND.code}
    if descriptor.database is not None:
        params["db"] = descriptor.database
    if options.precision is not None:
        params["epoch"] = options.precision.code
    if options.retention_policy is not None:
        params["rp"] = options.retention_policy
    if q is not None:
        params["q"] = q
    return params


def write_params(descriptor: ConnectionDescriptor, options: QueryOptions) -> dict[str, str]:
    params: dict[str, str] = {}
    if descriptor.database is not None:
        params["db"] = descriptor.database
    if options.precision is not None:
        params["precision"] = options.precision.code
    if options.retention_policy is not None:
        params["rp"] = options.retention_policy
    return params


def query_url(
    descriptor: ConnectionDescriptor, q: str, options: QueryOptions
) -> tuple[str, dict[str, str]]:
    params = query_params(descriptor, options, q)
    d = descriptor
    return encode_url(d.scheme, d.host, d.port, d.sub_path + "/query", params), params


def write_url(
    descriptor: ConnectionDescriptor, options: QueryOptions
) -> tuple[str, dict[str, str]]:
    params = write_params(descriptor, options)
    d = descriptor
    return encode_url(d.scheme, d.host, d.port, d.sub_path + "/write", params), params
