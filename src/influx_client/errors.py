"""
Custom exceptions for the InfluxDB HTTP client.

Server-side failures (404, 4xx, 5xx) are returned as result values; only
caller mistakes, pool unavailability and network I/O failures are raised.

Bad configs, option mappings and point mappings passed to the client raise
``ContractViolation``. Building ``Point`` or ``QueryOptions`` directly raises
pydantic's ``ValidationError``, as any pydantic model does.
"""

from __future__ import annotations

from typing import Optional


class InfluxOperationalError(Exception):
    """Base operational error for the InfluxDB client."""

    pass


class NotFound(InfluxOperationalError):
    """Endpoint or database missing (HTTP 404)."""

    pass


class ServerError(InfluxOperationalError):
    """HTTP 5xx; message carries the response body text."""

    pass


class BadRequest(InfluxOperationalError):
    """Any other HTTP 4xx (bad line protocol, auth failure, bad query)."""

    pass


class ContractViolation(InfluxOperationalError, ValueError):
    """Caller passed a config or batch that breaks the client contract."""

    pass


class PoolUnavailable(InfluxOperationalError):
    """No worker available in the resolved pool, or the pool query timed out."""

    pass


class TimeoutExceeded(InfluxOperationalError):
    """Request did not complete within the configured timeout."""

    pass


class TransportFailure(InfluxOperationalError):
    """Connection-level failure before any HTTP status was received."""

    pass


def error_for_status(status: int, text: str) -> Optional[InfluxOperationalError]:
    if status == 404:
        return NotFound(text)
    if status >= 500:
        return ServerError(text)
    if status >= 400:
        return BadRequest(text)
    return None


def map_http_error(e: Exception) -> InfluxOperationalError:
    import httpx

    if isinstance(e, httpx.TimeoutException):
        return TimeoutExceeded(str(e))
    if isinstance(e, httpx.TransportError):
        return TransportFailure(str(e))
    return InfluxOperationalError(str(e))
