"""
Configuration system for the route monitor.

Exports:
    RouteMonitorConfig: Main configuration container
    load_config: Load configuration from YAML/env
"""

from route_monitor.config.models import (
    RouteMonitorConfig,
    ServerSettings,
    KubernetesSettings,
    ProbeSettings,
    MonitorSettings,
)
from route_monitor.config.loader import load_config

__all__ = [
    "RouteMonitorConfig",
    "ServerSettings",
    "KubernetesSettings",
    "ProbeSettings",
    "MonitorSettings",
    "load_config",
]
