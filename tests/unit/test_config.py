# tests/unit/test_config.py
"""
Unit tests for configuration loading and management.
Tests defaults, YAML merging, env var overrides and validation.
"""

import os
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from route_monitor.config import RouteMonitorConfig, load_config
from route_monitor.config.loader import (
    _deep_merge,
    _get_env_overrides,
    _load_yaml_file,
    _parse_env_value,
)
from route_monitor.probe import ProbeMode


@pytest.fixture
def clean_env():
    """Run with no ROUTE_MONITOR_ variables set."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("ROUTE_MONITOR_")}
    with patch.dict(os.environ, env, clear=True):
        yield


class TestDeepMerge:
    """Tests for deep dictionary merging."""

    def test_simple_merge(self):
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 3}
        override = {"a": {"y": 10, "z": 20}}
        assert _deep_merge(base, override) == {"a": {"x": 1, "y": 10, "z": 20}, "b": 3}

    def test_base_not_mutated(self):
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestParseEnvValue:
    """Tests for typed environment values."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("true", True),
            ("No", False),
            ("9000", 9000),
            ("2.5", 2.5),
            ("openshift-console", "openshift-console"),
            ("ns/a, ns/b", ["ns/a", "ns/b"]),
        ],
    )
    def test_parse(self, raw, expected):
        assert _parse_env_value(raw) == expected

    def test_one_is_int_not_bool(self):
        assert _parse_env_value("1") == 1
        assert _parse_env_value("1") is not True


class TestEnvOverrides:
    """Tests for environment variable overrides."""

    def test_nested_keys(self):
        overrides = _get_env_overrides(
            {
                "ROUTE_MONITOR_SERVER__PORT": "9000",
                "ROUTE_MONITOR_PROBE__MODE": "tcp",
                "UNRELATED": "x",
            }
        )
        assert overrides == {"server": {"port": 9000}, "probe": {"mode": "tcp"}}

    def test_empty_key_parts_ignored(self):
        assert _get_env_overrides({"ROUTE_MONITOR_": "x", "ROUTE_MONITOR_SERVER__": "y"}) == {}


class TestLoadYaml:
    def test_missing_file(self, tmp_path):
        assert _load_yaml_file(tmp_path / "absent.yaml") == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("server: [unclosed")
        assert _load_yaml_file(path) == {}


class TestLoadConfig:
    """Tests for the full loading pipeline."""

    def test_defaults(self, tmp_path, clean_env):
        config = load_config(tmp_path)
        assert config.server.port == 8000
        assert config.kubernetes.group == "route.openshift.io"
        assert config.kubernetes.plural == "routes"
        assert config.probe.mode is ProbeMode.HTTP
        assert config.probe.scheme == "https"
        assert config.probe.timeout_seconds == 5
        assert config.monitor.interval_seconds == 1
        assert config.monitor.routes == []

    def test_user_config_overrides_defaults(self, tmp_path, clean_env):
        (tmp_path / "config.yaml").write_text(
            yaml.safe_dump(
                {
                    "monitor": {"routes": ["ns/a", "ns/b"], "concurrent": True},
                    "probe": {"timeout_seconds": 2},
                }
            )
        )
        config = load_config(tmp_path)
        assert config.monitor.routes == ["ns/a", "ns/b"]
        assert config.monitor.concurrent is True
        assert config.probe.timeout_seconds == 2
        assert config.probe.scheme == "https"

    def test_env_overrides_user_config(self, tmp_path, clean_env):
        (tmp_path / "config.yaml").write_text(yaml.safe_dump({"server": {"port": 9100}}))
        with patch.dict(
            os.environ,
            {
                "ROUTE_MONITOR_SERVER__PORT": "9200",
                "ROUTE_MONITOR_MONITOR__ROUTES": "ns/a,ns/b",
            },
        ):
            config = load_config(tmp_path)
        assert config.server.port == 9200
        assert config.monitor.routes == ["ns/a", "ns/b"]

    def test_invalid_route_key_rejected(self, tmp_path, clean_env):
        (tmp_path / "config.yaml").write_text(yaml.safe_dump({"monitor": {"routes": ["not-a-key"]}}))
        with pytest.raises(ValidationError, match="namespace"):
            load_config(tmp_path)

    def test_invalid_port_rejected(self, tmp_path, clean_env):
        with patch.dict(os.environ, {"ROUTE_MONITOR_SERVER__PORT": "70000"}):
            with pytest.raises(ValidationError):
                load_config(tmp_path)


class TestModels:
    def test_duplicate_routes_dropped_in_order(self):
        config = RouteMonitorConfig.model_validate(
            {"monitor": {"routes": ["ns/b", "ns/a", " ns/b"]}}
        )
        assert config.monitor.routes == ["ns/b", "ns/a"]

    def test_unsupported_scheme_rejected(self):
        with pytest.raises(ValidationError):
            RouteMonitorConfig.model_validate({"probe": {"scheme": "ftp"}})

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            RouteMonitorConfig.model_validate({"probe": {"mode": "icmp"}})

    def test_extra_fields_ignored(self):
        config = RouteMonitorConfig.model_validate({"future": {"x": 1}})
        assert not hasattr(config, "future")

    def test_single_route_string(self):
        config = RouteMonitorConfig.model_validate({"monitor": {"routes": "ns/a"}})
        assert config.monitor.routes == ["ns/a"]
