"""
Route sources.

A RouteSource is the cluster collaborator behind the route cache: it
produces full listings and a stream of add/update/delete events that
resumes from a listing's resource version. KubernetesRouteSource talks
to the API server through the dynamic custom objects API, so any
group/version/plural can be watched (routes.v1.route.openshift.io by
default).
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Generator, Optional

import urllib3
from kubernetes import client, config, watch
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from route_monitor.cache.types import (
    EventType,
    RouteEvent,
    RouteListing,
    record_from_object,
)
from route_monitor.errors import ResourceExpiredError, RouteMonitorError
from route_monitor.utils import get_logger

logger = get_logger(__name__)

HTTP_GONE = 410

ROUTE_GROUP = "route.openshift.io"
ROUTE_VERSION = "v1"
ROUTE_PLURAL = "routes"

# Client-side bounds on a watch request: connect timeout, and slack added
# to the server-side watch timeout before a silent connection is dropped
WATCH_CONNECT_TIMEOUT = 10
WATCH_READ_SLACK = 5


class RouteSource(ABC):
    """
    Abstract interface for a watch-capable source of route objects.

    Implementations:
    - KubernetesRouteSource: routes from the cluster API server
    - tests use an in-memory source fed from a queue
    """

    @abstractmethod
    def list_routes(self) -> RouteListing:
        """
        Fetch every route currently known to the source.

        Returns:
            RouteListing with all records and the listing's resource version
        """
        pass

    @abstractmethod
    def watch_routes(
        self,
        resource_version: Optional[str],
        timeout_seconds: float,
    ) -> Generator[RouteEvent, None, None]:
        """
        Stream change events that happened after resource_version.

        The iterator ends when timeout_seconds elapses or close() is
        called; the caller then relists or re-watches.

        Raises:
            ResourceExpiredError: If resource_version is too old to resume from
        """
        pass

    def close(self) -> None:
        """Interrupt any active watch stream."""
        pass


class KubernetesRouteSource(RouteSource):
    """
    Route source backed by the Kubernetes custom objects API.

    Watches all namespaces unless a namespace is given.
    """

    def __init__(
        self,
        api: client.CustomObjectsApi,
        group: str = ROUTE_GROUP,
        version: str = ROUTE_VERSION,
        plural: str = ROUTE_PLURAL,
        namespace: Optional[str] = None,
        watch_factory: Callable[[], watch.Watch] = watch.Watch,
    ):
        self.api = api
        self.group = group
        self.version = version
        self.plural = plural
        self.namespace = namespace
        self._watch_factory = watch_factory
        self._active_watch: Optional[watch.Watch] = None
        self._lock = threading.Lock()

    @property
    def resource(self) -> str:
        return f"{self.plural}.{self.version}.{self.group}"

    def _list_args(self) -> tuple[Callable[..., Any], tuple]:
        if self.namespace:
            return (
                self.api.list_namespaced_custom_object,
                (self.group, self.version, self.namespace, self.plural),
            )
        return (
            self.api.list_cluster_custom_object,
            (self.group, self.version, self.plural),
        )

    def list_routes(self) -> RouteListing:
        func, args = self._list_args()
        response = func(*args)
        items = response.get("items") or []
        resource_version = (response.get("metadata") or {}).get("resourceVersion")
        return RouteListing(
            records=[record_from_object(item) for item in items],
            resource_version=resource_version,
        )

    def watch_routes(
        self,
        resource_version: Optional[str],
        timeout_seconds: float,
    ) -> Generator[RouteEvent, None, None]:
        func, args = self._list_args()
        w = self._watch_factory()
        with self._lock:
            self._active_watch = w

        server_timeout = max(1, int(timeout_seconds))
        kwargs: dict[str, Any] = {
            "timeout_seconds": server_timeout,
            "allow_watch_bookmarks": True,
            # Without a read timeout a half-open connection blocks forever
            "_request_timeout": (WATCH_CONNECT_TIMEOUT, server_timeout + WATCH_READ_SLACK),
        }
        if resource_version:
            kwargs["resource_version"] = resource_version

        try:
            for raw in w.stream(func, *args, **kwargs):
                yield _event_from_raw(raw)
        except urllib3.exceptions.ReadTimeoutError:
            logger.info("Watch of %s went silent; reconnecting", self.resource)
            return
        except ApiException as e:
            if e.status == HTTP_GONE:
                raise ResourceExpiredError(
                    f"watch of {self.resource} expired at resource version {resource_version}"
                ) from e
            raise
        finally:
            w.stop()
            with self._lock:
                if self._active_watch is w:
                    self._active_watch = None

    def close(self) -> None:
        with self._lock:
            if self._active_watch is not None:
                self._active_watch.stop()


def _event_from_raw(raw: dict[str, Any]) -> RouteEvent:
    """Convert a kubernetes watch event dict into a RouteEvent."""
    event_type = raw.get("type")
    obj = raw.get("object") or raw.get("raw_object") or {}

    if event_type == "ERROR":
        code = obj.get("code")
        message = obj.get("message", "")
        if code == HTTP_GONE:
            raise ResourceExpiredError(message)
        raise RouteMonitorError(f"watch error {code}: {message}")

    resource_version = (obj.get("metadata") or {}).get("resourceVersion")

    if event_type == EventType.BOOKMARK.value:
        return RouteEvent(type=EventType.BOOKMARK, resource_version=resource_version)

    return RouteEvent(
        type=EventType(event_type),
        record=record_from_object(obj),
        resource_version=resource_version,
    )


def load_api_client(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
) -> client.ApiClient:
    """
    Build an API client.

    In-cluster configuration is tried first unless a kubeconfig path is
    given explicitly; otherwise the kubeconfig (default location if None)
    is loaded.
    """
    if not kubeconfig:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster config")
            return client.ApiClient()
        except ConfigException as e:
            logger.debug("In-cluster config unavailable: %s", e)

    api_client = config.new_client_from_config(config_file=kubeconfig, context=context)
    logger.info("Loaded kubeconfig %s", kubeconfig or "(default)")
    return api_client


def create_route_source(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
    group: str = ROUTE_GROUP,
    version: str = ROUTE_VERSION,
    plural: str = ROUTE_PLURAL,
    namespace: Optional[str] = None,
) -> KubernetesRouteSource:
    """Factory for a KubernetesRouteSource connected to the configured cluster."""
    api_client = load_api_client(kubeconfig, context)
    return KubernetesRouteSource(
        api=client.CustomObjectsApi(api_client),
        group=group,
        version=version,
        plural=plural,
        namespace=namespace,
    )
