"""
Reachability classification.

The table below is the whole policy; nothing else influences the state.

    found  | probe outcome | state
    -------+---------------+------------
    False  | (any)         | UNKNOWN
    True   | SUCCESS       | REACHABLE
    True   | FAILURE       | UNREACHABLE
    True   | UNKNOWN       | UNKNOWN
"""

from enum import Enum
from typing import Optional

from route_monitor.monitor.sink import MetricsSink
from route_monitor.probe.types import ProbeOutcome


class ReachabilityState(str, Enum):
    """Last known classification of a route."""

    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"
    UNKNOWN = "unknown"


def classify(found: bool, outcome: Optional[ProbeOutcome]) -> ReachabilityState:
    """
    Map a cache lookup result and a probe outcome to a reachability state.

    Args:
        found: Whether the route was present (and resolvable) in the cache
        outcome: Probe outcome; ignored when found is False
    """
    if not found:
        return ReachabilityState.UNKNOWN
    if outcome is ProbeOutcome.SUCCESS:
        return ReachabilityState.REACHABLE
    if outcome is ProbeOutcome.FAILURE:
        return ReachabilityState.UNREACHABLE
    return ReachabilityState.UNKNOWN


def emit(sink: MetricsSink, name: str, state: ReachabilityState) -> None:
    """Publish a state to the metrics sink."""
    if state is ReachabilityState.REACHABLE:
        sink.set_reachable(name)
    elif state is ReachabilityState.UNREACHABLE:
        sink.set_unreachable(name)
    else:
        sink.set_unknown(name)
