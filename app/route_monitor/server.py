"""
Application setup.

Builds the route cache, prober, metrics sink and monitor loop from the
configuration and wraps them in a Starlette application. The
application lifespan owns the process-wide stop signal: startup syncs
the cache and launches the monitor loop, shutdown stops the loop, the
cache watch and the prober.
"""

import asyncio
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional

from starlette.applications import Starlette

from route_monitor import __version__
from route_monitor.cache import RouteCache, RouteSource, create_route_source
from route_monitor.config import RouteMonitorConfig
from route_monitor.errors import SyncTimeoutError
from route_monitor.http import RouteMetrics, get_health_routes, get_metrics_routes
from route_monitor.monitor import RouteMonitor
from route_monitor.probe import Prober, create_prober
from route_monitor.utils import get_logger

logger = get_logger(__name__)


@dataclass
class MonitorBundle:
    """Bundle containing the application and the components it drives."""

    app: Starlette
    cache: RouteCache
    monitor: RouteMonitor
    metrics: RouteMetrics
    prober: Prober


def create_cache(config: RouteMonitorConfig, source: Optional[RouteSource] = None) -> RouteCache:
    """
    Create the route cache for the configured cluster.

    Args:
        config: Route monitor configuration
        source: Optional route source; a Kubernetes source is built when omitted
    """
    k8s = config.kubernetes
    if source is None:
        source = create_route_source(
            kubeconfig=k8s.kubeconfig,
            context=k8s.context,
            group=k8s.group,
            version=k8s.version,
            plural=k8s.plural,
            namespace=k8s.namespace,
        )

    return RouteCache(
        source,
        resync_seconds=k8s.resync_seconds,
        retry_delay=k8s.retry_delay_seconds,
        logger=get_logger("route_monitor.cache"),
    )


def create_app(
    config: RouteMonitorConfig,
    source: Optional[RouteSource] = None,
    prober: Optional[Prober] = None,
    metrics: Optional[RouteMetrics] = None,
    routes: Optional[Iterable[str]] = None,
) -> MonitorBundle:
    """
    Create and configure the route monitor application.

    Args:
        config: Route monitor configuration
        source: Optional route source (defaults to the Kubernetes API)
        prober: Optional prober (defaults to the configured probe mode)
        metrics: Optional metrics sink (defaults to a fresh registry)
        routes: Route keys to monitor (defaults to config.monitor.routes)

    Returns:
        MonitorBundle with the Starlette app and its components
    """
    cache = create_cache(config, source)

    if metrics is None:
        metrics = RouteMetrics()
    metrics.track_cache(cache)

    if prober is None:
        prober = create_prober(config.probe.mode, config.probe.max_body_bytes)

    monitor = RouteMonitor(
        cache=cache,
        prober=prober,
        metrics=metrics,
        routes=config.monitor.routes if routes is None else routes,
        scheme=config.probe.scheme,
        probe_timeout=config.probe.timeout_seconds,
        interval=config.monitor.interval_seconds,
        concurrent=config.monitor.concurrent,
        logger=get_logger("route_monitor.monitor"),
    )

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        """
        Application lifespan manager.

        Raises SyncTimeoutError from startup if the route cache cannot
        sync, which aborts the server. Cancelling startup while the sync
        is pending stops the cache within one poll interval.
        """
        logger.info("Route monitor v%s starting...", __version__)

        # Lets a cancelled startup end the sync wait instead of running out its timeout
        cancel_sync = threading.Event()
        try:
            await asyncio.to_thread(cache.start, config.kubernetes.sync_timeout_seconds, cancel_sync)
        except (SyncTimeoutError, asyncio.CancelledError):
            cancel_sync.set()
            await prober.aclose()
            raise

        stop = asyncio.Event()
        task = asyncio.create_task(monitor.run(stop), name="route-monitor")

        try:
            yield
        finally:
            logger.info("Route monitor shutting down...")
            stop.set()
            try:
                await asyncio.wait_for(task, timeout=config.monitor.interval_seconds + 1.0)
            except asyncio.TimeoutError:
                logger.warning("Monitor loop did not stop in time; cancelled")
            await asyncio.to_thread(cache.stop)
            await prober.aclose()

    app = Starlette(
        routes=[*get_health_routes(), *get_metrics_routes()],
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.cache = cache
    app.state.metrics = metrics
    app.state.monitor = monitor

    return MonitorBundle(app=app, cache=cache, monitor=monitor, metrics=metrics, prober=prober)
