"""
Metrics sink interface used by the monitor loop.

Each set_* call overwrites the previous state for that route name.
Implementations must be safe to call from concurrent probing tasks.
"""

from abc import ABC, abstractmethod


class MetricsSink(ABC):
    """
    Abstract destination for reachability states.

    Implementations:
    - RouteMetrics: Prometheus collectors on an explicit registry
    """

    @abstractmethod
    def set_reachable(self, name: str) -> None:
        pass

    @abstractmethod
    def set_unreachable(self, name: str) -> None:
        pass

    @abstractmethod
    def set_unknown(self, name: str) -> None:
        pass

    def observe_probe(self, name: str, latency_seconds: float) -> None:
        """Record how long a probe took. Optional."""
        pass
