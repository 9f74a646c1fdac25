"""
Pydantic models for route monitor configuration.

Configuration is loaded from YAML files and environment variables,
then passed to components explicitly.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from route_monitor.cache.types import parse_route_key
from route_monitor.probe.types import ProbeMode


class ServerSettings(BaseModel):
    """Metrics/health HTTP server settings."""

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the metrics server to",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to listen on for metric requests",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level",
    )


class KubernetesSettings(BaseModel):
    """Cluster connection and route watch settings."""

    kubeconfig: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig (in-cluster config is tried first when unset)",
    )
    context: Optional[str] = Field(
        default=None,
        description="Kubeconfig context to use",
    )
    group: str = Field(default="route.openshift.io", description="Route API group")
    version: str = Field(default="v1", description="Route API version")
    plural: str = Field(default="routes", description="Route resource plural")
    namespace: Optional[str] = Field(
        default=None,
        description="Only watch routes in this namespace (all namespaces when unset)",
    )
    resync_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Period between full relists of routes",
    )
    sync_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Maximum wait for the initial route cache sync",
    )
    retry_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pause before relisting after a failed list or watch",
    )


class ProbeSettings(BaseModel):
    """Reachability probe settings."""

    mode: ProbeMode = Field(
        default=ProbeMode.HTTP,
        description="http: full HTTP exchange, tcp: transport-level connect",
    )
    scheme: Literal["https", "http"] = Field(
        default="https",
        description="Scheme used to build target URLs from route hosts",
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="Timeout for each probe in seconds",
    )
    max_body_bytes: int = Field(
        default=65536,
        ge=0,
        description="Maximum response body bytes drained by http probes",
    )


class MonitorSettings(BaseModel):
    """Monitor loop settings."""

    routes: list[str] = Field(
        default_factory=list,
        description="Route keys (<namespace>/<name>) to monitor, in order",
    )
    interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Pause between monitoring cycles in seconds",
    )
    concurrent: bool = Field(
        default=False,
        description="Probe all routes of a cycle concurrently",
    )

    @field_validator("routes", mode="before")
    @classmethod
    def split_routes(cls, v):
        """Accept a single comma separated string (from the environment)."""
        if isinstance(v, str):
            return [item for item in v.split(",") if item.strip()]
        return v

    @field_validator("routes")
    @classmethod
    def validate_routes(cls, v: list[str]) -> list[str]:
        """Validate route keys and drop duplicates, keeping the first occurrence."""
        keys: list[str] = []
        for key in v:
            namespace, name = parse_route_key(key)
            normalized = f"{namespace}/{name}"
            if normalized not in keys:
                keys.append(normalized)
        return keys


class RouteMonitorConfig(BaseModel):
    """
    Main configuration container for the route monitor.
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    probe: ProbeSettings = Field(default_factory=ProbeSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)

    # Allow extra fields to be ignored (forward compatibility)
    model_config = ConfigDict(extra="ignore")
