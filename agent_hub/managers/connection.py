from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from agent_hub.exceptions import (
    InternalInvariantViolation,
    TransportWriteError,
)
from agent_hub.logging import logger
from agent_hub.schemas.agent import AgentIdentity, ConnectionSummary


class ConnectionState(StrEnum):
    """Lifecycle states of one agent connection."""

    CONNECTING = "connecting"
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    CLOSED = "closed"


# Registered -> Registered is an identity refresh
_ALLOWED_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.CONNECTING: frozenset(
        {ConnectionState.UNREGISTERED, ConnectionState.CLOSED}
    ),
    ConnectionState.UNREGISTERED: frozenset(
        {ConnectionState.REGISTERED, ConnectionState.CLOSED}
    ),
    ConnectionState.REGISTERED: frozenset(
        {ConnectionState.REGISTERED, ConnectionState.CLOSED}
    ),
    ConnectionState.CLOSED: frozenset(),
}


class AgentConnection:
    """
    Envelope around one agent WebSocket and its per-connection state.

    The envelope exclusively owns the transport: all writes go through
    `send` and the socket is closed at most once through `close`, no
    matter how many paths (operator kick, agent disconnect, failed write)
    try to close it.
    """

    def __init__(self, connection_id: int, websocket: WebSocket) -> None:
        self.id = connection_id
        self.websocket = websocket
        self.state = ConnectionState.CONNECTING
        self.identity: AgentIdentity | None = None
        self.connected_at = datetime.now(UTC)
        self._close_requested = False

    def __repr__(self) -> str:
        return f"<AgentConnection id={self.id} state={self.state}>"

    @property
    def registered(self) -> bool:
        return self.state is ConnectionState.REGISTERED

    @property
    def is_open(self) -> bool:
        """
        Whether a write to the transport can currently succeed.

        A connection that is closing (close requested by the server or
        disconnect received from the client) reports False.
        """
        if self._close_requested or self.state is ConnectionState.CLOSED:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def _transition(self, new_state: ConnectionState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise InternalInvariantViolation(
                f"Illegal transition {self.state} -> {new_state} "
                f"for connection {self.id}"
            )
        self.state = new_state

    def mark_unregistered(self) -> None:
        self._transition(ConnectionState.UNREGISTERED)

    def register(self, identity: AgentIdentity) -> None:
        self._transition(ConnectionState.REGISTERED)
        self.identity = identity

    def mark_closed(self) -> None:
        if self.state is not ConnectionState.CLOSED:
            self._transition(ConnectionState.CLOSED)

    def summary(self) -> ConnectionSummary:
        """
        Build the operator-facing summary of this connection.

        Raises:
            InternalInvariantViolation: If the connection never registered.
        """
        if self.identity is None:
            raise InternalInvariantViolation(
                f"Connection {self.id} has no identity to summarize"
            )
        return ConnectionSummary(
            id=self.id,
            connected_at=self.connected_at,
            **self.identity.model_dump(),
        )

    async def send(self, message: BaseModel) -> None:
        """
        Write one JSON message to the agent.

        Args:
            message: Pydantic model serialized with its field aliases.

        Raises:
            TransportWriteError: If the underlying socket refused the write.
        """
        try:
            await self.websocket.send_json(
                message.model_dump(mode="json", by_alias=True)
            )
        except (WebSocketDisconnect, OSError, RuntimeError) as e:
            # WebSocketDisconnect: Client disconnected
            # OSError: Network errors
            # RuntimeError: WebSocket in invalid state
            raise TransportWriteError(self.id, e) from e

    async def close(self, code: int = 1000, reason: str | None = None) -> bool:
        """
        Close the transport exactly once.

        Args:
            code: WebSocket close code.
            reason: Optional close reason sent to the agent.

        Returns:
            True if this call performed the close, False if the connection
            was already closed or closing.
        """
        if self._close_requested:
            return False
        self._close_requested = True

        if self.websocket.application_state != WebSocketState.CONNECTED:
            return True

        try:
            await self.websocket.close(code=code, reason=reason)
        except (WebSocketDisconnect, OSError, RuntimeError) as e:
            logger.debug(f"Connection {self.id} was already closing: {e}")
        return True
