"""
Data models for the InfluxDB HTTP client.

Points and options are pydantic models; jobs and results are plain frozen
dataclasses since they are only ever built by this library.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import ConnectionDescriptor
from .errors import ContractViolation, InfluxOperationalError


class TimeUnit(str, Enum):
    """Timestamp precision; ``code`` is the wire value for epoch/precision."""

    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    MILLISECOND = "millisecond"
    MICROSECOND = "microsecond"
    NANOSECOND = "nanosecond"

    @property
    def code(self) -> str:
        return _PRECISION_CODES[self]


_PRECISION_CODES = {
    TimeUnit.HOUR: "h",
    TimeUnit.MINUTE: "m",
    TimeUnit.SECOND: "s",
    TimeUnit.MILLISECOND: "ms",
    TimeUnit.MICROSECOND: "u",
    TimeUnit.NANOSECOND: "ns",
}


class QueryOptions(BaseModel):
    """Per-call options. ``timeout`` is in seconds; None waits indefinitely."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout: Optional[float] = None
    precision: Optional[TimeUnit] = None
    retention_policy: Optional[str] = None


class WriteOptions(QueryOptions):
    # only consulted by write_async when asking the pool for workers
    get_worker_timeout: Optional[float] = 5.0


OptionsT = TypeVar("OptionsT", bound=QueryOptions)


def coerce_options(
    options: Union[QueryOptions, Mapping[str, Any], None], cls: Type[OptionsT]
) -> OptionsT:
    if options is None:
        return cls()
    if isinstance(options, cls):
        return options
    try:
        if isinstance(options, QueryOptions):
            return cls.model_validate(options.model_dump(exclude_unset=True))
        return cls.model_validate(dict(options))
    except ValidationError as e:
        raise ContractViolation(f"invalid {cls.__name__}: {e}") from e


FieldValue = Union[bool, int, float, str]


class Point(BaseModel):
    """One line-protocol point. ``time`` is an integer in the write precision."""

    measurement: str
    tags: dict[str, str] = Field(default_factory=dict)
    fields: dict[str, FieldValue]
    time: Optional[int] = None

    @field_validator("measurement")
    @classmethod
    def _non_empty_measurement(cls, v):
        if not v:
            raise ValueError("measurement must not be empty")
        return v

    @field_validator("fields")
    @classmethod
    def _non_empty_fields(cls, v):
        if not v:
            raise ValueError("a point needs at least one field")
        return v


class Series(BaseModel):
    name: Optional[str] = None
    tags: dict[str, str] = Field(default_factory=dict)
    columns: list[str] = Field(default_factory=list)
    values: list[list[Any]] = Field(default_factory=list)

    def rows(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, v)) for v in self.values]


class StatementResult(BaseModel):
    statement_id: int = 0
    series: list[Series] = Field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class Result:
    """
    Outcome of one HTTP call.

    ``Result()`` is a bare success (writes), ``Result(results=[...])`` a query
    success, ``Result(error=NotFound(...))`` an error response.
    """

    results: Optional[list[StatementResult]] = None
    error: Optional[InfluxOperationalError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "Result":
        if self.error is not None:
            raise self.error
        return self


@dataclass(frozen=True)
class AsyncWriteJob:
    """Already-encoded write handed to a pool worker; consumed exactly once."""

    descriptor: ConnectionDescriptor
    body: bytes
    options: WriteOptions

    @property
    def destination(self) -> tuple:
        # jobs with equal destinations can share one request
        o = self.options
        return (self.descriptor, o.timeout, o.precision, o.retention_policy)


Batch = Sequence[AsyncWriteJob]


class DispatchOutcome(str, Enum):
    """What write_async can promise: the job was enqueued, never that it was written."""

    ENQUEUED = "enqueued"
    REJECTED = "rejected"
