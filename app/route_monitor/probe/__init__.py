"""
Bounded-time reachability probes.

This module provides:
- Probe outcome/result types
- HTTP (full exchange) and TCP (transport-level) probers
"""

from route_monitor.probe.types import ProbeMode, ProbeOutcome, ProbeResult
from route_monitor.probe.prober import (
    HTTPProber,
    InvalidProbeTarget,
    Prober,
    TCPProber,
    create_prober,
    insecure_ssl_context,
    parse_target,
)

__all__ = [
    # Types
    "ProbeMode",
    "ProbeOutcome",
    "ProbeResult",
    # Probers
    "Prober",
    "HTTPProber",
    "TCPProber",
    "InvalidProbeTarget",
    "create_prober",
    "insecure_ssl_context",
    "parse_target",
]
