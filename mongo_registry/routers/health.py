"""
Health check router for liveness and readiness probes.
"""
from fastapi import APIRouter, Request, status

from mongo_registry.models.connection import ReadyState
from mongo_registry.models.registry import RegistrationState

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the API is running.
    """
    return {"status": "healthy"}


@router.get(
    "/health/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness check with registry connections",
)
async def readiness_check(request: Request):
    """
    Readiness check that pings every registered connection.
    """
    namespace = getattr(request.app.state, "registry_namespace", "mongo")
    registry = getattr(request.app.state, f"{namespace}_registry", None)

    checks = {"api": "healthy"}
    connections = {}

    if registry is None or registry.state is not RegistrationState.PUBLISHED:
        checks["mongodb"] = "unavailable"
    else:
        for key, entry in registry.entries.items():
            connection = entry.connection
            try:
                await connection.ping()
                checks[f"mongodb:{key}"] = "healthy"
            except Exception as e:
                checks[f"mongodb:{key}"] = f"unhealthy: {str(e)}"
            state = ReadyState(connection.ready_state)
            connections[key] = {
                "host": connection.host,
                "port": connection.port,
                "database": connection.name,
                "state": state.name.lower(),
                "models": sorted(entry.models),
            }

    all_healthy = all(v == "healthy" for v in checks.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
        "connections": connections,
    }
