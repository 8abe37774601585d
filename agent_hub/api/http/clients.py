"""Operator endpoints for listing agents and sending them commands."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from agent_hub.dependencies import HubDep, require_operator
from agent_hub.logging import logger
from agent_hub.schemas.agent import ConnectionSummary
from agent_hub.schemas.command import CommandResponse, SendCommandRequest

router = APIRouter(
    prefix="/api",
    tags=["clients"],
    dependencies=[Depends(require_operator)],
)


def _command_response(response: CommandResponse) -> JSONResponse:
    return JSONResponse(
        status_code=(
            status.HTTP_200_OK
            if response.success
            else status.HTTP_404_NOT_FOUND
        ),
        content=response.model_dump(exclude_none=True),
    )


@router.get(
    "/clients",
    response_model=list[ConnectionSummary],
    summary="List registered agents",
)
async def list_clients(hub: HubDep) -> list[ConnectionSummary]:
    """
    Lists every registered agent connection.

    Unregistered connections (assigned an id but not yet registered) are
    never listed.
    """
    return hub.list_connections()


@router.post(
    "/send-command",
    response_model=CommandResponse,
    response_model_exclude_none=True,
    summary="Send a command to one agent or to all agents",
)
async def send_command(
    request: SendCommandRequest, hub: HubDep
) -> JSONResponse:
    """
    Sends an opaque command to the agent `clientId`, or to every registered
    agent when `clientId` is "all".

    Returns 400 when `clientId` or `command` is missing and 404 when a single
    target is not registered or its connection is no longer open.
    """
    if not request.is_complete:
        logger.debug(f"Rejected incomplete command request: {request}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=CommandResponse.err_msg(
                "Missing required fields"
            ).model_dump(exclude_none=True),
        )

    response = await hub.send_command(
        request.client_id,  # type: ignore[arg-type]
        request.command,  # type: ignore[arg-type]
        request.params,
    )
    return _command_response(response)


@router.delete(
    "/clients/{client_id}",
    response_model=CommandResponse,
    response_model_exclude_none=True,
    summary="Disconnect an agent",
)
async def kick_client(client_id: int, hub: HubDep) -> JSONResponse:
    """Closes the agent's connection and removes it from the registry."""
    return _command_response(await hub.kick(client_id))
