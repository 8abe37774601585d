"""
Owned server state of the agent hub.

One `HubState` is created by the application factory and stored on
``app.state.hub``. Connection lifecycle handlers and operator endpoints
reach it through the app instead of through module-level globals, so every
app instance (and every test) starts from an empty registry and id 1.
"""

from typing import Any

from agent_hub.constants import ALL_TARGETS, WS_POLICY_VIOLATION_CODE
from agent_hub.logging import logger
from agent_hub.managers.dispatcher import (
    Delivered,
    Dispatcher,
    DispatchTarget,
)
from agent_hub.managers.registry import ConnectionRegistry, IdAllocator
from agent_hub.schemas.agent import ConnectionSummary
from agent_hub.schemas.command import CommandResponse

NOT_FOUND_ERROR = "Client not found or disconnected"


class HubState:
    def __init__(self) -> None:
        self.id_allocator = IdAllocator()
        self.registry = ConnectionRegistry()
        self.dispatcher = Dispatcher(self.registry)
        # Accepted and not yet closed, registered or not
        self.open_connections = 0

    def list_connections(self) -> list[ConnectionSummary]:
        """Summaries of every registered agent, in registration order."""
        return list(self.registry.list_all())

    async def send_command(
        self,
        target: DispatchTarget,
        command: str,
        params: dict[str, Any] | None = None,
    ) -> CommandResponse:
        """
        Sends a command to one agent or to all of them.

        Args:
            target: Connection id or "all".
            command: Opaque command name.
            params: Opaque command payload.

        Returns:
            Success response reporting how many agents received the command,
            or a not-found error response for a single missing target.
        """
        result = await self.dispatcher.dispatch(target, command, params)

        if not isinstance(result, Delivered):
            return CommandResponse.err_msg(NOT_FOUND_ERROR)

        if target == ALL_TARGETS:
            return CommandResponse.ok_msg(
                f"Command sent to {result.count} clients"
            )
        return CommandResponse.ok_msg(f"Command sent to client {target}")

    async def kick(self, connection_id: int) -> CommandResponse:
        """
        Forces an agent off the hub.

        The entry is removed from the registry and the transport is closed
        with a policy-violation code. The connection task sees the close
        afterwards and its own cleanup becomes a no-op.

        Args:
            connection_id: Id of the agent to disconnect.

        Returns:
            Success response, or a not-found error response.
        """
        connection = self.registry.remove(connection_id)
        if connection is None:
            return CommandResponse.err_msg(NOT_FOUND_ERROR)

        await connection.close(
            code=WS_POLICY_VIOLATION_CODE, reason="Kicked by operator"
        )
        logger.info(f"Client {connection_id} kicked by operator")
        return CommandResponse.ok_msg(f"Client {connection_id} disconnected")
