"""
Line-protocol encoder.

``encode`` serializes points into ``measurement[,tag=val]* field=val[,...] [ts]\\n``
lines. It is deterministic and side-effect free: tags are emitted in key order,
fields in insertion order.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError

from .errors import ContractViolation
from .models import FieldValue, Point

PointLike = Union[Point, Mapping[str, Any]]

_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ ", "\n": r"\n"})
_KEY_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ ", "\n": r"\n"})


def coerce_point(obj: PointLike) -> Point:
    if isinstance(obj, Point):
        return obj
    try:
        return Point.model_validate(obj)
    except ValidationError as e:
        raise ContractViolation(f"invalid point: {e}") from e


def _field_value(value: FieldValue) -> str:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ContractViolation(f"line protocol cannot carry {value!r}")
        return repr(value)
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def encode_point(point: PointLike) -> str:
    p = coerce_point(point)
    parts = [p.measurement.translate(_MEASUREMENT_ESCAPES)]
    for key in sorted(p.tags):
        value = p.tags[key]
        if value == "":
            continue  # the server rejects empty tag values
        parts.append(f"{key.translate(_KEY_ESCAPES)}={value.translate(_KEY_ESCAPES)}")
    line = ",".join(parts)
    fields = ",".join(
        f"{k.translate(_KEY_ESCAPES)}={_field_value(v)}" for k, v in p.fields.items()
    )
    line = f"{line} {fields}"
    if p.time is not None:
        line = f"{line} {p.time}"
    return line + "\n"


def encode(points: Iterable[PointLike]) -> bytes:
    """Encode a sequence of points into one line-protocol body."""
    return "".join(encode_point(p) for p in points).encode("utf-8")
