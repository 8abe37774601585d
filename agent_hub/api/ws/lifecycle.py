import json
from typing import Any

from pydantic import ValidationError
from starlette.websockets import WebSocket

from agent_hub.constants import WS_INTERNAL_ERROR_CODE
from agent_hub.exceptions import MalformedMessageError
from agent_hub.logging import clear_log_context, logger, set_log_context
from agent_hub.managers.connection import AgentConnection, ConnectionState
from agent_hub.schemas.messages import (
    AgentAction,
    AssignIdMessage,
    RegisterMessage,
)
from agent_hub.state import HubState
from agent_hub.utils.metrics import (
    agent_messages_malformed_total,
    agent_registrations_total,
)


class ConnectionLifecycle:
    """
    State machine driving one agent connection.

    Connecting -> Unregistered -> Registered -> Closed

    - `on_accept` allocates the next id and pushes it to the agent.
    - `on_message` commits the connection into the registry on the first
      valid registration; every other message is ignored.
    - `on_close` removes the connection from the registry, from any state.

    Malformed payloads are logged and discarded; they never close the
    connection.
    """

    def __init__(self, hub: HubState, websocket: WebSocket) -> None:
        self.hub = hub
        self.websocket = websocket
        self.connection: AgentConnection | None = None

    @property
    def state(self) -> ConnectionState:
        if self.connection is None:
            return ConnectionState.CONNECTING
        return self.connection.state

    async def on_accept(self) -> AgentConnection:
        """
        Assigns an id to the freshly accepted connection.

        Returns:
            The new envelope, in the Unregistered state.

        Raises:
            TransportWriteError: If the id assignment could not be sent.
        """
        connection_id = self.hub.id_allocator.next_id()
        self.connection = AgentConnection(connection_id, self.websocket)
        self.hub.open_connections += 1
        set_log_context(connection_id=connection_id)
        logger.info(f"New agent connection {connection_id}")

        self.connection.mark_unregistered()
        await self.connection.send(AssignIdMessage(id=connection_id))
        return self.connection

    async def on_message(self, raw: str | bytes | None) -> None:
        """
        Handles one inbound frame.

        Args:
            raw: Text or binary frame payload.
        """
        if self.connection is None or self.state is ConnectionState.CLOSED:
            return

        try:
            payload = self.decode(raw)
            action = payload.get("action")

            if action == AgentAction.REGISTER:
                await self._register(payload)
            else:
                logger.debug(
                    f"Ignoring '{action}' message from {self.state} "
                    f"connection {self.connection.id}"
                )
        except MalformedMessageError as e:
            agent_messages_malformed_total.inc()
            logger.warning(
                f"Discarded malformed message on connection "
                f"{self.connection.id}: {e}"
            )

    async def on_close(self, close_code: int) -> None:
        """
        Removes the connection from the registry and marks it Closed.

        Safe to call more than once and after an operator kick.

        Args:
            close_code: WebSocket close code reported by the transport.
        """
        connection = self.connection
        if connection is None or connection.state is ConnectionState.CLOSED:
            return

        self.hub.registry.remove(connection.id)
        connection.mark_closed()
        self.hub.open_connections -= 1
        logger.info(
            f"Client disconnected: {connection.id} (code {close_code})"
        )
        clear_log_context()

    @staticmethod
    def decode(raw: str | bytes | None) -> dict[str, Any]:
        """
        Parses a frame into a JSON object.

        Raises:
            MalformedMessageError: If the frame is not a JSON object.
        """
        if raw is None:
            raise MalformedMessageError("Empty frame")
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedMessageError(f"Invalid JSON: {e}") from e
        except RecursionError as e:
            raise MalformedMessageError("JSON nested too deeply") from e

        if not isinstance(payload, dict):
            raise MalformedMessageError(
                f"Expected JSON object, got {type(payload).__name__}"
            )
        return payload

    async def _register(self, payload: dict[str, Any]) -> None:
        connection = self.connection
        if connection is None:
            return

        try:
            message = RegisterMessage.model_validate(payload)
        except ValidationError as e:
            raise MalformedMessageError(
                f"Invalid registration ({e.error_count()} errors)"
            ) from e

        if message.id is not None and message.id != connection.id:
            raise MalformedMessageError(
                f"Registration claims id {message.id} but connection was "
                f"assigned id {connection.id}"
            )

        if connection.registered:
            connection.register(message.to_identity())
            logger.info(
                f"Client re-registered: {message.username} "
                f"(ID: {connection.id})"
            )
            return

        connection.register(message.to_identity())
        if not self.hub.registry.insert(connection.id, connection):
            await connection.close(code=WS_INTERNAL_ERROR_CODE)
            return

        agent_registrations_total.inc()
        logger.info(
            f"Client registered: {message.username} (ID: {connection.id})"
        )
