"""
Fakes shared by the FlareSight tests.
"""

import asyncio

import numpy as np


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeFrameSource:
    """Frame source with a switchable readiness flag."""

    def __init__(self, ready: bool = True, shape=(1080, 1920, 3)):
        self.ready = ready
        self.frame = np.full(shape, 128, dtype=np.uint8)
        self.reads = 0

    def has_frame(self) -> bool:
        return self.ready

    def read_frame(self) -> np.ndarray:
        self.reads += 1
        return self.frame


class InstantTransport:
    """Returns a fixed result immediately and records every payload."""

    def __init__(self, result=None):
        self.result = result
        self.payloads = []

    @property
    def calls(self) -> int:
        return len(self.payloads)

    async def classify(self, frame: bytes):
        self.payloads.append(frame)
        return self.result


class BlockingTransport:
    """Blocks each call until release() is called."""

    def __init__(self):
        self.calls = 0
        self.started = asyncio.Event()
        self._release = asyncio.Event()
        self._result = None

    async def classify(self, frame: bytes):
        self.calls += 1
        self.started.set()
        await self._release.wait()
        return self._result

    def release(self, result=None):
        self._result = result
        self._release.set()


class FailingTransport:
    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    async def classify(self, frame: bytes):
        self.calls += 1
        raise self.error


