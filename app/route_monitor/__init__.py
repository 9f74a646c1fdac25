"""
Route Monitor.

Watches OpenShift Route objects through a local informer-style cache,
periodically probes the configured routes and publishes their
reachability as Prometheus metrics.
"""

__version__ = "0.1.0"
