"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from agent_hub.dependencies import HubDep

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    registered_agents: int
    open_connections: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(hub: HubDep) -> HealthResponse:
    """
    Report liveness of the hub.

    The hub keeps no external dependencies, so it is healthy whenever it
    can answer; the counters help spot agents that connect but never
    register.

    Returns:
        HealthResponse: Status plus registered agent and open connection
        counts.
    """
    return HealthResponse(
        status="healthy",
        registered_agents=len(hub.registry),
        open_connections=hub.open_connections,
    )
