"""
Pytest configuration and shared fakes.

FakeRouteSource stands in for the cluster: tests mutate its records and
push watch events through a queue. StubProber returns canned outcomes
per URL and records every call.
"""

import asyncio
import queue
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

# Add app directory to path
APP_DIR = Path(__file__).parent.parent / "app"
sys.path.insert(0, str(APP_DIR))

from route_monitor.cache import (  # noqa: E402
    EventType,
    RouteCache,
    RouteEvent,
    RouteListing,
    RouteRecord,
    RouteSource,
)
from route_monitor.probe import Prober, ProbeOutcome, ProbeResult  # noqa: E402
from route_monitor.errors import ProbeConnectionError  # noqa: E402


class FakeRouteSource(RouteSource):
    """In-memory route source driven by the test."""

    def __init__(self, records: tuple[RouteRecord, ...] = ()):
        self.records: dict[str, RouteRecord] = {r.key: r for r in records}
        self.events: "queue.Queue[RouteEvent | Exception]" = queue.Queue()
        self.list_calls = 0
        self.watch_calls = 0
        self.fail_lists = 0
        self.block_lists = False
        self._version = 0
        self._closed = threading.Event()

    def list_routes(self) -> RouteListing:
        self.list_calls += 1
        if self.block_lists:
            self._closed.wait()
            raise ConnectionError("source closed")
        if self.fail_lists > 0:
            self.fail_lists -= 1
            raise ConnectionError("api server unavailable")
        return RouteListing(
            records=list(self.records.values()),
            resource_version=str(self._version),
        )

    def watch_routes(self, resource_version, timeout_seconds):
        self.watch_calls += 1
        deadline = time.monotonic() + timeout_seconds
        while not self._closed.is_set() and time.monotonic() < deadline:
            try:
                item = self.events.get(timeout=0.01)
            except queue.Empty:
                continue
            if isinstance(item, Exception):
                raise item
            yield item

    def close(self) -> None:
        self._closed.set()

    def _emit(self, event_type: EventType, record: RouteRecord) -> None:
        self._version += 1
        self.events.put(RouteEvent(type=event_type, record=record, resource_version=str(self._version)))

    def add(self, record: RouteRecord) -> None:
        self.records[record.key] = record
        self._emit(EventType.ADDED, record)

    def update(self, record: RouteRecord) -> None:
        self.records[record.key] = record
        self._emit(EventType.MODIFIED, record)

    def delete(self, record: RouteRecord) -> None:
        self.records.pop(record.key, None)
        self._emit(EventType.DELETED, record)

    def drop_watch(self, error: Optional[Exception] = None) -> None:
        self.events.put(error or ConnectionError("watch connection reset"))


class StubProber(Prober):
    """Prober returning canned outcomes keyed by URL."""

    def __init__(
        self,
        outcomes: Optional[dict[str, ProbeOutcome]] = None,
        default: ProbeOutcome = ProbeOutcome.SUCCESS,
        delay: float = 0.0,
    ):
        self.outcomes = outcomes or {}
        self.default = default
        self.delay = delay
        self.calls: list[str] = []
        self.closed = False

    async def probe(self, url: str, timeout: float) -> ProbeResult:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.get(url, self.default)
        error = ProbeConnectionError(url, "stub failure") if outcome is ProbeOutcome.FAILURE else None
        return ProbeResult(outcome=outcome, latency=0.001, detail="stub", url=url, error=error)

    async def aclose(self) -> None:
        self.closed = True


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def make_source() -> Generator[Callable[..., FakeRouteSource], None, None]:
    """Factory for FakeRouteSource instances, closed after the test."""
    sources: list[FakeRouteSource] = []

    def factory(*records: RouteRecord) -> FakeRouteSource:
        source = FakeRouteSource(records)
        sources.append(source)
        return source

    yield factory

    for source in sources:
        source.close()


@pytest.fixture
def make_cache() -> Generator[Callable[..., RouteCache], None, None]:
    """Factory for started RouteCache instances, stopped after the test."""
    caches: list[RouteCache] = []

    def factory(source: RouteSource, start: bool = True, **kwargs) -> RouteCache:
        kwargs.setdefault("retry_delay", 0.01)
        cache = RouteCache(source, **kwargs)
        caches.append(cache)
        if start:
            cache.start(timeout=2.0)
        return cache

    yield factory

    for cache in caches:
        cache.stop(timeout=1.0)


@pytest.fixture
def stub_prober() -> Callable[..., StubProber]:
    """Factory for StubProber instances."""
    return StubProber


@pytest.fixture
def eventually() -> Callable[..., bool]:
    """Polling helper for conditions that become true asynchronously."""
    return wait_until
