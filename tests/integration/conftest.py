"""
Integration test fixtures.

Runs the full application in-process: the Starlette app with its
lifespan, a route cache fed by an in-memory source and a stub prober.
"""

from typing import Callable, Generator

import pytest
from starlette.testclient import TestClient

from route_monitor.cache import RouteRecord
from route_monitor.config import RouteMonitorConfig
from route_monitor.server import MonitorBundle, create_app

ROUTES = ["openshift-console/console", "openshift-console/missing", "default/pending"]


def fast_config(sync_timeout: float = 2.0, **monitor) -> RouteMonitorConfig:
    """Configuration with fast cycles for testing."""
    return RouteMonitorConfig.model_validate(
        {
            "kubernetes": {"sync_timeout_seconds": sync_timeout, "retry_delay_seconds": 0.01},
            "probe": {"timeout_seconds": 1},
            "monitor": {"routes": ROUTES, "interval_seconds": 0.05, **monitor},
        }
    )


@pytest.fixture
def make_config() -> Callable[..., RouteMonitorConfig]:
    return fast_config


@pytest.fixture
def bundle(make_source, stub_prober) -> MonitorBundle:
    """Application bundle over a source with one resolvable and one hostless route."""
    source = make_source(
        RouteRecord("console", "openshift-console", "console.apps.example.com"),
        RouteRecord("pending", "default", ""),
    )
    return create_app(fast_config(), source=source, prober=stub_prober())


@pytest.fixture
def client(bundle: MonitorBundle) -> Generator[TestClient, None, None]:
    """Test client with the application lifespan running."""
    with TestClient(bundle.app) as client:
        yield client


@pytest.fixture
def wait_for_cycle(bundle: MonitorBundle, eventually) -> Callable[[], None]:
    """Block until the monitor has completed at least one cycle."""

    def wait() -> None:
        assert eventually(lambda: bundle.monitor.cycles_completed >= 1)

    return wait
