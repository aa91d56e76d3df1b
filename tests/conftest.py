"""
Pytest configuration and fixtures for influx-http-client.

Provides cross-platform event loop configuration and HTTP recording helpers.
"""

import asyncio
import sys

import httpx
import pytest

from influx_client import new_config

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


@pytest.fixture
def descriptor():
    """Descriptor for the canonical db1:8086/metrics target."""
    return new_config({"host": "db1", "port": 8086, "database": "metrics"})


class Recorder:
    """httpx MockTransport handler that records requests and replays one response."""

    def __init__(self, status: int = 204, text: str = ""):
        self.status = status
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, text=self.text)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_recorder():
    return Recorder
