"""
Helpers for reading point streams (NDJSON files, stdin, gzip).
"""

from __future__ import annotations

import gzip
import json
import sys
from typing import Any, Iterator


def iter_ndjson(path: str) -> Iterator[Any]:
    """Yield one decoded JSON value per non-blank line; ``-`` reads stdin, ``.gz`` is unzipped."""
    if path == "-":
        stream = sys.stdin
        close = False
    elif path.endswith(".gz"):
        stream = gzip.open(path, "rt", encoding="utf-8")
        close = True
    else:
        stream = open(path, "r", encoding="utf-8")
        close = True
    try:
        for lineno, line in enumerate(stream, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{lineno}: invalid JSON: {e.msg}") from e
    finally:
        if close:
            stream.close()


def iter_point_groups(path: str) -> Iterator[list[Any]]:
    """Each NDJSON line is either one point object or a list of points."""
    for obj in iter_ndjson(path):
        yield obj if isinstance(obj, list) else [obj]
