"""
Local mirror of cluster routes.

Provides the route cache, the record/event types it stores and the
route sources that feed it.
"""

from route_monitor.cache.types import (
    EventType,
    RouteEvent,
    RouteListing,
    RouteRecord,
    parse_route_key,
    record_from_object,
    route_key,
)
from route_monitor.cache.source import (
    KubernetesRouteSource,
    RouteSource,
    create_route_source,
    load_api_client,
)
from route_monitor.cache.store import RouteCache

__all__ = [
    # Types
    "EventType",
    "RouteEvent",
    "RouteListing",
    "RouteRecord",
    "parse_route_key",
    "record_from_object",
    "route_key",
    # Sources
    "RouteSource",
    "KubernetesRouteSource",
    "create_route_source",
    "load_api_client",
    # Cache
    "RouteCache",
]
