# tests/unit/test_classifier.py
"""
Unit tests for reachability classification.
"""

import pytest

from route_monitor.monitor import MetricsSink, ReachabilityState, classify, emit
from route_monitor.probe import ProbeOutcome


class RecordingSink(MetricsSink):
    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def set_reachable(self, name):
        self.calls.append(("reachable", name))

    def set_unreachable(self, name):
        self.calls.append(("unreachable", name))

    def set_unknown(self, name):
        self.calls.append(("unknown", name))


class TestClassify:
    """The classification table, exhaustively."""

    @pytest.mark.parametrize(
        "found,outcome,expected",
        [
            (False, None, ReachabilityState.UNKNOWN),
            (False, ProbeOutcome.SUCCESS, ReachabilityState.UNKNOWN),
            (False, ProbeOutcome.FAILURE, ReachabilityState.UNKNOWN),
            (False, ProbeOutcome.UNKNOWN, ReachabilityState.UNKNOWN),
            (True, ProbeOutcome.SUCCESS, ReachabilityState.REACHABLE),
            (True, ProbeOutcome.FAILURE, ReachabilityState.UNREACHABLE),
            (True, ProbeOutcome.UNKNOWN, ReachabilityState.UNKNOWN),
        ],
    )
    def test_table(self, found, outcome, expected):
        assert classify(found, outcome) is expected


class TestEmit:
    """Tests for publishing states to a sink."""

    @pytest.mark.parametrize(
        "state,call",
        [
            (ReachabilityState.REACHABLE, "reachable"),
            (ReachabilityState.UNREACHABLE, "unreachable"),
            (ReachabilityState.UNKNOWN, "unknown"),
        ],
    )
    def test_emit_calls_matching_setter(self, state, call):
        sink = RecordingSink()
        emit(sink, "ns/a", state)
        assert sink.calls == [(call, "ns/a")]

    def test_observe_probe_is_optional(self):
        sink = RecordingSink()
        sink.observe_probe("ns/a", 0.5)
        assert sink.calls == []
