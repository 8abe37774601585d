"""FastAPI dependencies for operator endpoints."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from agent_hub.logging import logger
from agent_hub.settings import app_settings
from agent_hub.state import HubState

operator_basic = HTTPBasic(auto_error=False)


def get_hub(request: Request) -> HubState:
    """
    Returns the hub state owned by the running application.

    Args:
        request: Incoming operator request.

    Returns:
        HubState: The application's registry, allocator and dispatcher.
    """
    return request.app.state.hub


async def require_operator(
    credentials: Annotated[
        HTTPBasicCredentials | None, Depends(operator_basic)
    ],
) -> None:
    """
    Checks operator HTTP Basic credentials.

    The check is skipped when OPERATOR_PASSWORD is not configured, leaving
    operator authentication to whatever sits in front of the hub.

    Raises:
        HTTPException: 401 Unauthorized if credentials are missing or wrong.
    """
    if app_settings.OPERATOR_PASSWORD is None:
        return

    if credentials is None or not (
        secrets.compare_digest(
            credentials.username.encode(),
            app_settings.OPERATOR_USERNAME.encode(),
        )
        & secrets.compare_digest(
            credentials.password.encode(),
            app_settings.OPERATOR_PASSWORD.encode(),
        )
    ):
        logger.warning("Operator authentication failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )


HubDep = Annotated[HubState, Depends(get_hub)]
