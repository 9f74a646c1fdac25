"""
Route monitor loop.

Each cycle walks the configured route keys in order: look the route up
in the cache, resolve it to a URL, probe it, classify the result and
publish the state to the metrics sink. A failure in one route never
affects another, and nothing a route does can end the loop; only the
stop signal does.
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Iterable, Optional

from route_monitor.cache.store import RouteCache
from route_monitor.errors import LookupMissError, ProbeTimeoutError, UnresolvableRouteError
from route_monitor.monitor.classifier import ReachabilityState, classify, emit
from route_monitor.monitor.resolver import DEFAULT_SCHEME, resolve
from route_monitor.monitor.sink import MetricsSink
from route_monitor.probe.prober import Prober
from route_monitor.probe.types import ProbeOutcome, ProbeResult
from route_monitor.utils import get_logger

# Extra time allowed on top of the probe timeout before the loop gives up on a prober
PROBE_GRACE_SECONDS = 1.0


@dataclass(frozen=True)
class RouteCheck:
    """
    Result of checking one route in one cycle.

    Attributes:
        name: Route key (namespace/name)
        state: Published reachability state
        url: Probed URL, if the route resolved
        probe: Probe result, if a probe ran
        error: Error that led to UNKNOWN/UNREACHABLE, if any
    """

    name: str
    state: ReachabilityState
    url: Optional[str] = None
    probe: Optional[ProbeResult] = None
    error: Optional[Exception] = None


class RouteMonitor:
    """
    Periodically probes the configured routes and publishes their state.

    Collaborators are injected so the loop can run against fakes:
    cache lookups, the prober, the metrics sink and the logger.
    """

    def __init__(
        self,
        cache: RouteCache,
        prober: Prober,
        metrics: MetricsSink,
        routes: Iterable[str],
        scheme: str = DEFAULT_SCHEME,
        probe_timeout: float = 5.0,
        interval: float = 1.0,
        concurrent: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the monitor.

        Args:
            cache: Route cache to read from
            prober: Prober used for every route
            metrics: Destination for reachability states
            routes: Route keys to monitor, in emission order
            scheme: URL scheme used when resolving routes
            probe_timeout: Timeout for each probe in seconds
            interval: Pause between cycles in seconds
            concurrent: Probe all routes of a cycle concurrently
            logger: Logger for per-route results
        """
        self.cache = cache
        self.prober = prober
        self.metrics = metrics
        self.routes = list(dict.fromkeys(routes))
        self.scheme = scheme
        self.probe_timeout = probe_timeout
        self.interval = interval
        self.concurrent = concurrent
        self.cycles_completed = 0
        self._logger = logger or get_logger(__name__)

    async def check_route(self, name: str) -> RouteCheck:
        """Look up, resolve, probe and classify a single route."""
        record, found = self.cache.get(name)
        if not found or record is None:
            return RouteCheck(name=name, state=classify(False, None), error=LookupMissError(name))

        try:
            url = resolve(record, self.scheme)
        except UnresolvableRouteError as e:
            return RouteCheck(name=name, state=ReachabilityState.UNKNOWN, error=e)

        result = await self._probe(url)
        self.metrics.observe_probe(name, result.latency)
        return RouteCheck(
            name=name,
            state=classify(True, result.outcome),
            url=url,
            probe=result,
            error=result.error,
        )

    async def _probe(self, url: str) -> ProbeResult:
        deadline = self.probe_timeout + PROBE_GRACE_SECONDS
        try:
            return await asyncio.wait_for(
                self.prober.probe(url, self.probe_timeout),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            error = ProbeTimeoutError(url, self.probe_timeout)
            return ProbeResult(
                outcome=ProbeOutcome.FAILURE,
                latency=deadline,
                detail=str(error),
                url=url,
                error=error,
            )

    async def _safe_check(self, name: str) -> RouteCheck:
        try:
            return await self.check_route(name)
        except Exception as e:
            self._logger.exception("error checking route %r", name)
            return RouteCheck(name=name, state=ReachabilityState.UNKNOWN, error=e)

    def _publish(self, check: RouteCheck) -> None:
        emit(self.metrics, check.name, check.state)

        if check.state is ReachabilityState.REACHABLE:
            detail = check.probe.detail if check.probe else ""
            self._logger.info("route %r is reachable (%s)", check.name, detail)
        elif check.state is ReachabilityState.UNREACHABLE:
            self._logger.warning("route %r is NOT reachable: %s", check.name, check.error)
        else:
            self._logger.warning("route %r is unknown: %s", check.name, check.error)

    async def run_cycle(self) -> list[RouteCheck]:
        """
        Check every configured route once.

        Results are published in configured order, whether the routes
        were probed one after another or concurrently.
        """
        checks: list[RouteCheck] = []

        if self.concurrent:
            checks = list(await asyncio.gather(*(self._safe_check(n) for n in self.routes)))
            for check in checks:
                self._publish(check)
        else:
            for i, name in enumerate(self.routes):
                self._logger.debug("[%d/%d] verifying route connectivity for %r", i + 1, len(self.routes), name)
                check = await self._safe_check(name)
                self._publish(check)
                checks.append(check)

        self.cycles_completed += 1
        return checks

    async def run(self, stop: asyncio.Event) -> None:
        """
        Run cycles until stop is set.

        A cycle that is still in flight when stop is set is cancelled
        rather than drained.
        """
        self._logger.info(
            "Monitoring %d routes every %ss (timeout=%ss, concurrent=%s)",
            len(self.routes),
            self.interval,
            self.probe_timeout,
            self.concurrent,
        )

        while not stop.is_set():
            cycle = asyncio.create_task(self.run_cycle())
            stopped = asyncio.create_task(stop.wait())
            done, _ = await asyncio.wait({cycle, stopped}, return_when=asyncio.FIRST_COMPLETED)

            if cycle not in done:
                cycle.cancel()
                with suppress(asyncio.CancelledError):
                    await cycle
                break

            stopped.cancel()
            if cycle.exception() is not None:
                self._logger.error("Monitor cycle failed", exc_info=cycle.exception())

            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=self.interval)

        self._logger.info("Route monitor stopped after %d cycles", self.cycles_completed)
