"""
Exception taxonomy for the route monitor.

Only SyncTimeoutError escapes to the process level. Every other error is
absorbed at the monitor loop boundary and turned into a reachability
state for the affected route.
"""

from typing import Optional


class RouteMonitorError(Exception):
    """Base exception for route monitor errors."""

    pass


class SyncTimeoutError(RouteMonitorError):
    """Raised when the route cache does not complete its initial sync in time."""

    def __init__(self, timeout: float, reason: Optional[str] = None):
        message = f"Route cache did not sync within {timeout}s"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.timeout = timeout


class InvalidRouteKeyError(RouteMonitorError, ValueError):
    """Raised when a route identifier is not of the form namespace/name."""

    def __init__(self, key: str):
        super().__init__(f"Invalid route key {key!r}: expected <namespace>/<name>")
        self.key = key


class LookupMissError(RouteMonitorError):
    """A configured route is not present in the cache."""

    def __init__(self, key: str):
        super().__init__(f"Unknown route {key!r}")
        self.key = key


class UnresolvableRouteError(RouteMonitorError):
    """A cached route lacks the information needed to build a target URL."""

    def __init__(self, key: str, reason: str = "route has no host"):
        super().__init__(f"Cannot resolve route {key!r}: {reason}")
        self.key = key
        self.reason = reason


class ProbeTimeoutError(RouteMonitorError):
    """A probe did not complete within its timeout."""

    def __init__(self, url: str, timeout: float):
        super().__init__(f"Probe of {url} timed out after {timeout}s")
        self.url = url
        self.timeout = timeout


class ProbeConnectionError(RouteMonitorError):
    """A probe attempted a connection and it failed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to connect to {url}: {reason}")
        self.url = url
        self.reason = reason


class ResourceExpiredError(RouteMonitorError):
    """The watch resource version is too old (HTTP 410 Gone); a relist is required."""

    pass
