#!/usr/bin/env python3
"""
Route Monitor - Entry Point

Monitors the reachability of OpenShift routes and serves the results as
Prometheus metrics.
"""

import argparse
import sys
from pathlib import Path

# Add app directory to path for imports when running directly
APP_DIR = Path(__file__).parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from pydantic import ValidationError

from route_monitor import __version__
from route_monitor.config import RouteMonitorConfig, load_config
from route_monitor.errors import SyncTimeoutError
from route_monitor.server import create_app, create_cache
from route_monitor.utils import get_logger, setup_logging

logger = get_logger("route_monitor")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Monitor OpenShift route reachability and export Prometheus metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Monitor two routes using the current kubeconfig
  python main.py openshift-console/console openshift-console/downloads

  # Probe with plain TCP connects every 10 seconds
  python main.py --mode tcp --interval 10 openshift-console/console

  # Print every route known to the cluster and exit
  python main.py --list-routes
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"route-monitor {__version__}",
    )
    parser.add_argument(
        "routes",
        nargs="*",
        help="Routes to monitor as <namespace>/<name> (overrides config)",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        help="Configuration directory path (default: ~/.route-monitor/)",
    )
    parser.add_argument(
        "--kubeconfig",
        type=str,
        help="Path to kubeconfig file with authorization and master location information",
    )
    parser.add_argument(
        "--context",
        type=str,
        help="Kubeconfig context to use",
    )
    parser.add_argument(
        "--namespace",
        type=str,
        help="Only watch routes in this namespace",
    )
    parser.add_argument(
        "--listen-address",
        type=str,
        help="Address to listen on for metric requests, host:port (overrides config)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between monitoring cycles (overrides config)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Probe timeout in seconds (overrides config)",
    )
    parser.add_argument(
        "--mode",
        choices=["http", "tcp"],
        help="Probe mode (overrides config)",
    )
    parser.add_argument(
        "--scheme",
        choices=["https", "http"],
        help="Scheme used to build route URLs (overrides config)",
    )
    parser.add_argument(
        "--concurrent",
        action="store_true",
        default=None,
        help="Probe routes of a cycle concurrently",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (overrides config)",
    )
    parser.add_argument(
        "--list-routes",
        action="store_true",
        help="Sync the route cache, print all known routes and exit",
    )
    return parser.parse_args(argv)


def split_listen_address(address: str) -> tuple[str, int]:
    """Split host:port; an empty host (":8000") binds all interfaces."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address {address!r}: expected host:port")
    return host or "0.0.0.0", int(port)


def apply_overrides(config: RouteMonitorConfig, args: argparse.Namespace) -> RouteMonitorConfig:
    """Apply command line overrides and re-validate the configuration."""
    data = config.model_dump()

    if args.routes:
        data["monitor"]["routes"] = args.routes
    if args.kubeconfig:
        data["kubernetes"]["kubeconfig"] = args.kubeconfig
    if args.context:
        data["kubernetes"]["context"] = args.context
    if args.namespace:
        data["kubernetes"]["namespace"] = args.namespace
    if args.listen_address:
        data["server"]["host"], data["server"]["port"] = split_listen_address(args.listen_address)
    if args.interval:
        data["monitor"]["interval_seconds"] = args.interval
    if args.timeout:
        data["probe"]["timeout_seconds"] = args.timeout
    if args.mode:
        data["probe"]["mode"] = args.mode
    if args.scheme:
        data["probe"]["scheme"] = args.scheme
    if args.concurrent is not None:
        data["monitor"]["concurrent"] = args.concurrent
    if args.log_level:
        data["server"]["log_level"] = args.log_level

    return RouteMonitorConfig.model_validate(data)


def list_routes(config: RouteMonitorConfig) -> int:
    """Print every route known to the cluster as '<namespace>/<name> <host>'."""
    try:
        cache = create_cache(config)
    except Exception as e:
        logger.error("Failed to connect to cluster: %s", e)
        return 1

    try:
        cache.start(timeout=config.kubernetes.sync_timeout_seconds)
    except SyncTimeoutError as e:
        logger.error("Failed to sync route cache: %s", e)
        return 1

    try:
        for record in cache.list():
            print(f"{record.key} {record.host or '<no host>'}")
    finally:
        cache.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config_dir), args)
    except (ValidationError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.server.log_level)

    if args.list_routes:
        return list_routes(config)

    if not config.monitor.routes:
        logger.warning("No routes configured; only the route cache will be maintained")

    import uvicorn

    try:
        bundle = create_app(config)
    except Exception as e:
        logger.error("Failed to create route monitor: %s", e)
        return 1

    logger.info(
        "Serving metrics on http://%s:%d/metrics", config.server.host, config.server.port
    )
    try:
        uvicorn.run(
            bundle.app,
            host=config.server.host,
            port=config.server.port,
            log_level=config.server.log_level,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return 0

    # uvicorn exits with a startup failure code itself if the cache cannot sync
    return 0


if __name__ == "__main__":
    sys.exit(main())
