"""
Type definitions for the route cache.

RouteRecord is frozen: the cache hands the same instance to every
reader and no reader can mutate it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from route_monitor.errors import InvalidRouteKeyError


class EventType(str, Enum):
    """Watch event types delivered by a route source."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"


@dataclass(frozen=True)
class RouteRecord:
    """
    One cluster route at a point in time.

    Attributes:
        name: Route name, unique within its namespace
        namespace: Route namespace
        host: DNS name from spec.host; empty if the cluster has not set it yet
    """

    name: str
    namespace: str
    host: str = ""

    @property
    def key(self) -> str:
        """Identity key, <namespace>/<name>."""
        return route_key(self.namespace, self.name)

    @property
    def resolvable(self) -> bool:
        return bool(self.host)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class RouteEvent:
    """
    A single change notification from a route source.

    BOOKMARK events carry no record, only a resource version.
    """

    type: EventType
    record: Optional[RouteRecord] = None
    resource_version: Optional[str] = None


@dataclass
class RouteListing:
    """Full snapshot of routes returned by a relist."""

    records: list[RouteRecord] = field(default_factory=list)
    resource_version: Optional[str] = None


def route_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}" if namespace else name


def parse_route_key(key: str) -> tuple[str, str]:
    """
    Split a <namespace>/<name> key.

    Raises:
        InvalidRouteKeyError: If the key is not exactly two non-empty parts
    """
    parts = key.strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRouteKeyError(key)
    return parts[0], parts[1]


def record_from_object(obj: dict[str, Any]) -> RouteRecord:
    """
    Build a RouteRecord from an unstructured route object.

    Only metadata.name, metadata.namespace and spec.host are read. A
    missing or non-string host yields an empty host.
    """
    metadata = obj.get("metadata") or {}
    spec = obj.get("spec") or {}
    host = spec.get("host") if isinstance(spec, dict) else None
    return RouteRecord(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", ""),
        host=host if isinstance(host, str) else "",
    )
