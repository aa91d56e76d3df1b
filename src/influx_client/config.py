"""
Connection config normalization.

``new_config`` turns a sparse mapping of connection options into a complete,
immutable ``ConnectionDescriptor`` with defaults merged in first and caller
overrides applied second.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .errors import ContractViolation

DEFAULTS: dict[str, Any] = {
    "scheme": "http",
    "host": "localhost",
    "port": 8086,
    "sub_path": "",
    "username": "root",
    "password": "root",
}

_TEXT_KEYS = ("scheme", "host", "sub_path", "username", "password", "database")


@dataclass(frozen=True)
class ConnectionDescriptor:
    scheme: str = "http"
    host: str = "localhost"
    port: int = 8086
    sub_path: str = ""
    username: str = "root"
    password: str = "root"
    database: Optional[str] = None


ConfigLike = Union[ConnectionDescriptor, Mapping[str, Any]]


def to_text(value: Any) -> str:
    """Convert a text-like value (str, bytes-like, or nested lists of those) to str."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ContractViolation(f"not valid UTF-8 text: {e}") from e
    if isinstance(value, (list, tuple)):
        return "".join(to_text(v) for v in value)
    raise ContractViolation(f"expected text, got {type(value).__name__}")


def _check_port(port: Any) -> int:
    # bool is an int subclass; True is not a port
    if isinstance(port, bool) or not isinstance(port, int):
        raise ContractViolation(f"port must be an integer, got {port!r}")
    if not 0 < port < 65536:
        raise ContractViolation(f"port must be in (0, 65536), got {port}")
    return port


def new_config(opts: Optional[Mapping[str, Any]] = None) -> ConnectionDescriptor:
    """
    Build a ConnectionDescriptor from partial options.

    Explicit ``scheme=None`` / ``sub_path=None`` fall back to ``"http"`` / ``""``;
    ``database=None`` means no default database.
    """
    opts = dict(opts or {})
    unknown = set(opts) - set(DEFAULTS) - {"database"}
    if unknown:
        raise ContractViolation(f"unknown config keys: {sorted(unknown)}")

    merged = {**DEFAULTS, **opts}
    if merged["scheme"] is None:
        merged["scheme"] = "http"
    if merged["sub_path"] is None:
        merged["sub_path"] = ""
    if merged.get("database") is None:
        merged.pop("database", None)

    out: dict[str, Any] = {"port": _check_port(merged["port"])}
    for key in _TEXT_KEYS:
        if key in merged:
            out[key] = to_text(merged[key])
    return ConnectionDescriptor(**out)


def coerce_config(config: ConfigLike) -> ConnectionDescriptor:
    if isinstance(config, ConnectionDescriptor):
        return config
    return new_config(config)
