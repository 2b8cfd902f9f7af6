"""
Pytest configuration and fixtures for yieldfetch tests.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable

import httpx
import pytest

from yieldfetch.core.backends.http_backend import HttpBackend
from yieldfetch.core.fetch.throttling import Throttle


# Five years of data: 1990..1994
TODAY = date(1994, 6, 30)


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def throttle(fake_clock: FakeClock) -> Throttle:
    """One permit per second, driven by the fake clock."""
    return Throttle(capacity=1, refill_seconds=1.0, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    return tmp_path / "yieldcurves"


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


def year_of(request: httpx.Request) -> int:
    return int(request.url.params["field_tdr_date_value"])


def xml_body(year: int, tag: str = "v1") -> bytes:
    return f"<feed year='{year}' tag='{tag}'/>".encode()


@pytest.fixture
def make_backend() -> Callable[[Callable[[httpx.Request], httpx.Response]], HttpBackend]:
    """Build an HttpBackend served by a request handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> HttpBackend:
        return HttpBackend(timeout=5.0, transport=httpx.MockTransport(handler))

    return factory
