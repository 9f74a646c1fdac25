"""
Prometheus metrics for route reachability.

Provides the RouteMetrics sink and the /metrics endpoint in Prometheus
exposition format. Every RouteMetrics owns its CollectorRegistry, so
several instances (one per test, say) never collide.
"""

from contextlib import suppress
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Enum,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from route_monitor import __version__
from route_monitor.cache.store import RouteCache
from route_monitor.monitor.classifier import ReachabilityState
from route_monitor.monitor.sink import MetricsSink

STATES = [state.value for state in ReachabilityState]


class RouteMetrics(MetricsSink):
    """
    Metrics sink backed by prometheus_client collectors.

    Exposed series (all labelled by route name):
    - route_reachability: state set, exactly one of reachable/unreachable/unknown is 1
    - routes_reachable: 1 reachable, 0 unreachable, absent when unknown
    - route_checks_total: results per state
    - route_probe_duration_seconds: probe latency
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.reachability = Enum(
            "route_reachability",
            "Last known reachability state of a route.",
            ["name"],
            states=STATES,
            registry=self.registry,
        )
        self.reachable = Gauge(
            "routes_reachable",
            "Whether a route is reachable (1) or not (0).",
            ["name"],
            registry=self.registry,
        )
        self.checks = Counter(
            "route_checks",
            "Number of route checks by resulting state.",
            ["name", "state"],
            registry=self.registry,
        )
        self.probe_duration = Histogram(
            "route_probe_duration_seconds",
            "Time spent probing a route.",
            ["name"],
            registry=self.registry,
        )
        self.cache_routes = Gauge(
            "route_cache_routes",
            "Number of routes in the local route cache.",
            registry=self.registry,
        )
        self.build_info = Info(
            "route_monitor_build",
            "Route monitor build information.",
            registry=self.registry,
        )
        self.build_info.info({"version": __version__})

    def set_reachable(self, name: str) -> None:
        self.reachability.labels(name=name).state(ReachabilityState.REACHABLE.value)
        self.reachable.labels(name=name).set(1)
        self.checks.labels(name=name, state=ReachabilityState.REACHABLE.value).inc()

    def set_unreachable(self, name: str) -> None:
        self.reachability.labels(name=name).state(ReachabilityState.UNREACHABLE.value)
        self.reachable.labels(name=name).set(0)
        self.checks.labels(name=name, state=ReachabilityState.UNREACHABLE.value).inc()

    def set_unknown(self, name: str) -> None:
        self.reachability.labels(name=name).state(ReachabilityState.UNKNOWN.value)
        # No series yet for routes that were never probed
        with suppress(KeyError):
            self.reachable.remove(name)
        self.checks.labels(name=name, state=ReachabilityState.UNKNOWN.value).inc()

    def observe_probe(self, name: str, latency_seconds: float) -> None:
        self.probe_duration.labels(name=name).observe(latency_seconds)

    def track_cache(self, cache: RouteCache) -> None:
        """Report the cache size on every scrape."""
        self.cache_routes.set_function(lambda: len(cache))

    def state(self, name: str) -> Optional[ReachabilityState]:
        """Current published state for a route, or None if never published."""
        for value in STATES:
            sample = self.registry.get_sample_value(
                "route_reachability",
                {"name": name, "route_reachability": value},
            )
            if sample == 1.0:
                return ReachabilityState(value)
        return None

    def format_prometheus(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns:
        Plain text response in Prometheus exposition format
    """
    metrics: RouteMetrics = request.app.state.metrics
    return Response(metrics.format_prometheus(), media_type=CONTENT_TYPE_LATEST)


def get_metrics_routes() -> list[Route]:
    """
    Get metrics routes.

    Returns:
        List of Starlette Route objects
    """
    return [
        Route("/metrics", metrics_endpoint, methods=["GET"]),
    ]
