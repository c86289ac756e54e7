"""
Test Configuration
==================

Pytest fixtures and test doubles for PixelSocket.

FakeTransport stands in for a websockets connection: it is async-iterable,
exposes close_code / close_reason, and records sent messages.
FakeConnector hands out transports (or raises) in a scripted order.
"""

import asyncio
import base64
import json

import pytest


_CLOSED = object()


class FakeTransport:
    """In-memory WebSocket connection."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self.sent = []
        self.closed = False
        self.close_code = None
        self.close_reason = None

    def feed(self, message) -> None:
        """Deliver an inbound frame."""
        self._queue.put_nowait(message)

    def drop(self, code=1006, reason="", error=None) -> None:
        """Simulate the server closing (or the network failing)."""
        self.close_code = code
        self.close_reason = reason
        self._queue.put_nowait(error if error is not None else _CLOSED)

    async def send(self, data) -> None:
        if self.closed:
            raise ConnectionError("transport closed")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        if self.close_code is None:
            self.close_code = 1000
            self.close_reason = ""
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


class FakeConnector:
    """
    Scripted transport factory.

    Each call consumes the next outcome: a FakeTransport is returned,
    an Exception is raised. When the script runs out, ``default`` decides.
    """

    def __init__(self, outcomes=None, default=None) -> None:
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls = 0
        self.urls = []
        self.transports = []

    async def __call__(self, url):
        self.calls += 1
        self.urls.append(url)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
        elif self.default is not None:
            outcome = self.default
        else:
            outcome = FakeTransport()
        if isinstance(outcome, Exception):
            raise outcome
        self.transports.append(outcome)
        return outcome

    @property
    def transport(self) -> FakeTransport:
        """Most recently opened transport."""
        return self.transports[-1]


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll the event loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def make_connector():
    """Factory for FakeConnector instances."""
    return FakeConnector


@pytest.fixture
def make_transport():
    """Factory for FakeTransport instances."""
    return FakeTransport


@pytest.fixture
def until():
    """Coroutine function polling until a condition holds."""
    return wait_until


@pytest.fixture
def png_bytes():
    """Minimal PNG signature plus IHDR-like tail."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 13


@pytest.fixture
def jpeg_bytes():
    return b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x01" * 32 + b"\xff\xd9"


@pytest.fixture
def sample_image_generated():
    """Structured image-generated event as sent by the server."""
    return {
        "type": "image-generated",
        "data": {
            "mode": "push",
            "promptId": "p1",
            "base64Data": "iVBORw0KGgo=",
            "mimeType": "image/png",
            "imageInfo": {"filename": "a.png", "subfolder": "", "type": "output"},
            "imageIdx": 0,
            "imageLength": 1,
            "timestamp": 1000,
        },
    }


@pytest.fixture
def sample_image_generated_text(sample_image_generated):
    return json.dumps(sample_image_generated)


@pytest.fixture
def make_generic_message():
    """Build a generic base64Data-bearing JSON message."""

    def _make(data: bytes, **fields) -> str:
        payload = {"base64Data": base64.b64encode(data).decode("ascii")}
        payload.update(fields)
        return json.dumps(payload)

    return _make
