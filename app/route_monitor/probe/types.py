"""
Type definitions for reachability probes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProbeOutcome(str, Enum):
    """
    Result of a single reachability check.

    FAILURE means a connection attempt was made and did not succeed.
    UNKNOWN means no meaningful attempt could be made (e.g. malformed URL).
    """

    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


class ProbeMode(str, Enum):
    """How much of an exchange a probe performs."""

    HTTP = "http"  # Full HTTP GET, response body drained
    TCP = "tcp"  # Transport-level connect (TLS handshake for https)


@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of one probe.

    Attributes:
        outcome: Tri-state probe outcome
        latency: Seconds spent on the probe
        detail: Human-readable description (status code or error)
        url: The probed URL
        error: ProbeTimeoutError/ProbeConnectionError for failures
    """

    outcome: ProbeOutcome
    latency: float
    detail: str
    url: str
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.outcome is ProbeOutcome.SUCCESS
