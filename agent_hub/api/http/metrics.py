"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get(
    "/metrics",
    response_class=Response,
    summary="Prometheus metrics endpoint",
    tags=["metrics"],
)
async def metrics() -> Response:
    """
    Expose Prometheus metrics for monitoring.

    Returns:
        Response: Metrics in Prometheus text format.

    Example:
        ```
        # HELP agent_connections_active Number of open agent WebSocket connections
        # TYPE agent_connections_active gauge
        agent_connections_active 3.0
        ```
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
