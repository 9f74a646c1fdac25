"""
HTTP endpoints for health checks and metrics.

Provides:
- /health: Kubernetes liveness probe
- /ready: Kubernetes readiness probe (route cache synced)
- /metrics: Prometheus-format metrics
"""

from route_monitor.http.health import get_health_routes, health_check, ready_check
from route_monitor.http.metrics import (
    get_metrics_routes,
    metrics_endpoint,
    RouteMetrics,
)

__all__ = [
    "get_health_routes",
    "health_check",
    "ready_check",
    "get_metrics_routes",
    "metrics_endpoint",
    "RouteMetrics",
]
