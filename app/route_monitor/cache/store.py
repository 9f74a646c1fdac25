"""
Informer-style route cache.

RouteCache keeps a local mirror of route objects. A background thread
lists every route from a RouteSource, then follows the source's watch
stream and applies add/update/delete events. The watch is restarted
until resync_seconds have passed, after which the cache relists in full,
which bounds staleness even if the event stream silently dropped events.
A dropped or expired watch also triggers a relist. Lookups never touch
the network.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import closing
from typing import Optional

from route_monitor.cache.source import RouteSource
from route_monitor.cache.types import EventType, RouteEvent, RouteRecord
from route_monitor.errors import ResourceExpiredError, SyncTimeoutError
from route_monitor.utils import get_logger


class RouteCache:
    """
    Eventually-consistent mirror of cluster routes keyed by namespace/name.

    Records are immutable and replaced whole under a lock, so a reader
    always sees either the record before an event or the record after
    it, never a mix. Readers share record instances; RouteRecord is
    frozen so they cannot change them.
    """

    def __init__(
        self,
        source: RouteSource,
        resync_seconds: float = 300.0,
        retry_delay: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the route cache.

        Args:
            source: Watch-capable route source
            resync_seconds: Period between full relists
            retry_delay: Pause before relisting after a failed list or watch
            logger: Logger for sync and event activity
        """
        self._source = source
        self._resync_seconds = resync_seconds
        self._retry_delay = retry_delay
        self._logger = logger or get_logger(__name__)

        self._items: dict[str, RouteRecord] = {}
        self._lock = threading.Lock()
        self._synced = threading.Event()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_error: Optional[Exception] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        timeout: float = 60.0,
        cancel: Optional[threading.Event] = None,
        poll_interval: float = 0.1,
    ) -> None:
        """
        Start the sync thread and block until the initial listing is applied.

        Args:
            timeout: Maximum time to wait for the initial sync
            cancel: Optional caller stop signal; aborts the wait when set
            poll_interval: How often the cancel signal is checked

        Raises:
            SyncTimeoutError: If the cache did not sync in time or the wait
                was cancelled. The sync thread is stopped before raising.
        """
        if self._thread is None:
            self._stopping.clear()
            self._thread = threading.Thread(
                target=self._run,
                name="route-cache-sync",
                daemon=True,
            )
            self._thread.start()

        deadline = time.monotonic() + timeout
        while not self._synced.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                reason = f"last error: {self._last_error}" if self._last_error else None
                self.stop()
                raise SyncTimeoutError(timeout, reason)
            if cancel is not None and cancel.is_set():
                self.stop()
                raise SyncTimeoutError(timeout, "cancelled before initial sync")
            if self._stopping.is_set():
                raise SyncTimeoutError(timeout, "cache stopped before initial sync")
            self._synced.wait(min(poll_interval, remaining))

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the sync thread and interrupt any active watch."""
        self._stopping.set()
        self._source.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    @property
    def has_synced(self) -> bool:
        return self._synced.is_set()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> tuple[Optional[RouteRecord], bool]:
        """
        Look up a route by namespace/name.

        Returns:
            (record, True) if the route is cached, (None, False) otherwise
        """
        with self._lock:
            record = self._items.get(key)
        return record, record is not None

    def list(self, namespace: Optional[str] = None) -> list[RouteRecord]:
        """
        Snapshot of cached routes, sorted by key.

        Args:
            namespace: Only return routes in this namespace
        """
        with self._lock:
            records = list(self._items.values())
        if namespace is not None:
            records = [r for r in records if r.namespace == namespace]
        return sorted(records, key=lambda r: r.key)

    def keys(self) -> list[str]:
        """Every cached namespace/name, sorted."""
        with self._lock:
            return sorted(self._items)

    def hosts_by_namespace(self) -> dict[str, list[str]]:
        """Map each namespace to the hosts of its resolvable routes."""
        hosts: dict[str, list[str]] = {}
        for record in self.list():
            if record.resolvable:
                hosts.setdefault(record.namespace, []).append(record.host)
        return hosts

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    # ------------------------------------------------------------------
    # Writes (sync thread only)
    # ------------------------------------------------------------------

    def _replace(self, records: list[RouteRecord]) -> None:
        items = {record.key: record for record in records}
        with self._lock:
            self._items = items

    def _apply(self, event: RouteEvent) -> None:
        record = event.record
        if record is None:
            return

        with self._lock:
            if event.type is EventType.DELETED:
                self._items.pop(record.key, None)
            else:
                self._items[record.key] = record

        self._logger.debug("route %s %s (host=%r)", record.key, event.type.value.lower(), record.host)

    def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                listing = self._source.list_routes()
            except Exception as e:
                self._last_error = e
                self._logger.warning(
                    "Failed to list routes: %s; retrying in %ss", e, self._retry_delay
                )
                self._stopping.wait(self._retry_delay)
                continue

            self._replace(listing.records)
            if not self._synced.is_set():
                self._synced.set()
                self._logger.info("Route cache synced with %d routes", len(listing.records))
            else:
                self._logger.debug("Relisted %d routes", len(listing.records))

            self._watch(listing.resource_version)

    def _watch(self, resource_version: Optional[str]) -> None:
        """Follow the watch stream until the resync deadline, a failure or stop."""
        deadline = time.monotonic() + self._resync_seconds

        while not self._stopping.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return

            try:
                with closing(self._source.watch_routes(resource_version, remaining)) as events:
                    for event in events:
                        if self._stopping.is_set():
                            return
                        if event.resource_version:
                            resource_version = event.resource_version
                        if event.type is not EventType.BOOKMARK:
                            self._apply(event)
            except ResourceExpiredError as e:
                self._logger.info("Route watch expired (%s); relisting", e)
                return
            except Exception as e:
                self._last_error = e
                self._logger.warning(
                    "Route watch dropped: %s; relisting in %ss", e, self._retry_delay
                )
                self._stopping.wait(self._retry_delay)
                return
