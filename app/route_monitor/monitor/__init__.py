"""
Monitoring core: resolution, classification and the monitor loop.
"""

from route_monitor.monitor.classifier import ReachabilityState, classify, emit
from route_monitor.monitor.loop import RouteCheck, RouteMonitor
from route_monitor.monitor.resolver import DEFAULT_SCHEME, SUPPORTED_SCHEMES, resolve
from route_monitor.monitor.sink import MetricsSink

__all__ = [
    "ReachabilityState",
    "classify",
    "emit",
    "RouteCheck",
    "RouteMonitor",
    "DEFAULT_SCHEME",
    "SUPPORTED_SCHEMES",
    "resolve",
    "MetricsSink",
]
