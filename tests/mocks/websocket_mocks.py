"""
Mock factory functions for WebSocket testing.

Provides mocks for agent WebSocket connections and the envelopes wrapping
them.
"""

from unittest.mock import AsyncMock, MagicMock


def create_mock_websocket(open: bool = True):
    """
    Creates a mock WebSocket connection with common methods.

    Args:
        open: Whether both sides of the connection report CONNECTED.

    Returns:
        MagicMock: Mocked WebSocket instance
    """
    from starlette.websockets import WebSocket, WebSocketState

    ws_mock = MagicMock(spec=WebSocket)

    # Send operations
    ws_mock.send_json = AsyncMock()
    ws_mock.send_text = AsyncMock()
    ws_mock.send_bytes = AsyncMock()

    # Connection lifecycle
    ws_mock.accept = AsyncMock()
    ws_mock.close = AsyncMock()

    state = WebSocketState.CONNECTED if open else WebSocketState.DISCONNECTED
    ws_mock.client_state = state
    ws_mock.application_state = state
    ws_mock.headers = {}
    ws_mock.query_params = {}

    return ws_mock


def create_registered_connection(
    connection_id: int,
    username: str = "Bob",
    open: bool = True,
):
    """
    Creates a registered AgentConnection around a mock WebSocket.

    Args:
        connection_id: Id assigned to the connection.
        username: Username reported at registration.
        open: Whether the underlying transport reports open.

    Returns:
        AgentConnection: Envelope in the Registered state.
    """
    from agent_hub.managers.connection import AgentConnection
    from agent_hub.schemas.agent import AgentIdentity

    connection = AgentConnection(
        connection_id, create_mock_websocket(open=open)
    )
    connection.mark_unregistered()
    connection.register(
        AgentIdentity(
            userId=str(connection_id * 10),
            username=username,
            jobId=f"job-{connection_id}",
            gameName="Game",
        )
    )
    return connection


def register_payload(**overrides):
    """
    Builds an agent registration message.

    Args:
        **overrides: Fields replacing the defaults.

    Returns:
        dict: Registration payload as sent by an agent.
    """
    payload = {
        "action": "register",
        "userId": "42",
        "username": "Bob",
        "jobId": "job-1",
        "gameName": "Game",
    }
    payload.update(overrides)
    return payload


def wait_for_clients(client, count: int, timeout: float = 2.0) -> list[dict]:
    """
    Polls the operator listing until it holds `count` agents.

    Registration is processed by the connection task without any reply to
    the agent, so tests have to wait for it to become visible.

    Args:
        client: FastAPI test client.
        count: Expected number of listed agents.
        timeout: Seconds to wait before returning whatever is listed.

    Returns:
        list[dict]: The last listing fetched.
    """
    import time

    deadline = time.monotonic() + timeout
    while True:
        clients = client.get("/api/clients").json()
        if len(clients) == count or time.monotonic() > deadline:
            return clients
        time.sleep(0.01)
