"""
Health check endpoints for Kubernetes probes.

Provides /health (liveness) and /ready (readiness) endpoints.

The application lifespan blocks until the route cache has completed its
initial sync, so a serving process always answers /ready with 200. The
cache check only fails for an app mounted without its lifespan.
"""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from route_monitor import __version__


async def health_check(request: Request) -> JSONResponse:
    """
    Kubernetes liveness probe endpoint.

    Returns:
        JSON response with health status
    """
    return JSONResponse(
        {
            "status": "healthy",
            "version": __version__,
            "service": "route_monitor",
        }
    )


async def ready_check(request: Request) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns:
        JSON response with readiness status and the number of cached routes
    """
    cache = getattr(request.app.state, "cache", None)
    checks = {
        "server": True,
        "cache_synced": bool(cache is not None and cache.has_synced),
    }

    all_ready = all(checks.values())

    return JSONResponse(
        {
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
            "routes_cached": len(cache) if cache is not None else 0,
        },
        status_code=200 if all_ready else 503,
    )


def get_health_routes() -> list[Route]:
    """
    Get health check routes.

    Returns:
        List of Starlette Route objects
    """
    return [
        Route("/health", health_check, methods=["GET"]),
        Route("/ready", ready_check, methods=["GET"]),
    ]
