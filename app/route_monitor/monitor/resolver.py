"""
Route resolution.

The target scheme is a policy value supplied by configuration (https
unless configured otherwise); it is never inferred from the route
object's ports or TLS settings.
"""

from route_monitor.cache.types import RouteRecord
from route_monitor.errors import UnresolvableRouteError

DEFAULT_SCHEME = "https"
SUPPORTED_SCHEMES = ("https", "http")


def resolve(record: RouteRecord, scheme: str = DEFAULT_SCHEME) -> str:
    """
    Build the target URL for a route.

    Args:
        record: Cached route
        scheme: URL scheme to use

    Returns:
        URL of the form <scheme>://<host>

    Raises:
        UnresolvableRouteError: If the route has no host or scheme is unsupported
    """
    if scheme not in SUPPORTED_SCHEMES:
        raise UnresolvableRouteError(record.key, f"unsupported scheme {scheme!r}")

    host = record.host.strip()
    if not host:
        raise UnresolvableRouteError(record.key)
    if "/" in host or any(c.isspace() for c in host):
        raise UnresolvableRouteError(record.key, f"invalid host {record.host!r}")

    return f"{scheme}://{host}"
