"""
HTTP transport for the InfluxDB API (httpx, sync and async).

``post`` performs one Basic-authenticated POST and classifies the response:
2xx -> ok (query 200 -> parsed results), 404 -> NotFound, 5xx -> ServerError,
other 4xx -> BadRequest. Network failures raise (see ``errors.map_http_error``).
"""

from __future__ import annotations

import json
from typing import Literal, Optional

import httpx
from loguru import logger

from .errors import BadRequest, error_for_status, map_http_error
from .models import Result, StatementResult

RequestKind = Literal["query", "write"]


def to_result(kind: RequestKind, status: int, text: str) -> Result:
    err = error_for_status(status, text)
    if err is not None:
        return Result(error=err)
    if kind != "query" or status != 200 or not text.strip():
        return Result()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        return Result(error=BadRequest(f"unparseable query response: {e}"))
    if "error" in payload:
        return Result(error=BadRequest(payload["error"]))
    return Result(results=[StatementResult.model_validate(r) for r in payload.get("results", [])])


class HttpTransport:
    """
    Blocking transport over a pooled ``httpx.Client``.

    Usage:
        with HttpTransport() as t:
            t.post("write", url, "root", "root", "application/octet-stream", body, None)
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        self._owns_client = client is None
        self._client = client or httpx.Client()

    def post(
        self,
        kind: RequestKind,
        url: str,
        username: str,
        password: str,
        content_type: str,
        body: bytes,
        timeout: Optional[float],
    ) -> Result:
        logger.debug(f"POST {kind} {url} ({len(body)} bytes)")
        try:
            resp = self._client.post(
                url,
                content=body,
                headers={"Content-Type": content_type},
                auth=(username, password),
                timeout=timeout,
            )
        except httpx.TransportError as e:
            raise map_http_error(e) from e
        return to_result(kind, resp.status_code, resp.text)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class AsyncHttpTransport:
    """Async twin of HttpTransport over ``httpx.AsyncClient``; safe to share across tasks."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def post(
        self,
        kind: RequestKind,
        url: str,
        username: str,
        password: str,
        content_type: str,
        body: bytes,
        timeout: Optional[float],
    ) -> Result:
        logger.debug(f"POST {kind} {url} ({len(body)} bytes)")
        try:
            resp = await self._client.post(
                url,
                content=body,
                headers={"Content-Type": content_type},
                auth=(username, password),
                timeout=timeout,
            )
        except httpx.TransportError as e:
            raise map_http_error(e) from e
        return to_result(kind, resp.status_code, resp.text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
