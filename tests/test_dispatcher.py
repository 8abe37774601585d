"""
Tests for the command dispatcher.

This module tests single-target and broadcast delivery, not-found handling
and isolation of per-target write failures.
"""

from unittest.mock import AsyncMock

import pytest
from starlette.websockets import WebSocketDisconnect, WebSocketState

from agent_hub.managers.dispatcher import Delivered, Dispatcher, NotFound
from agent_hub.managers.registry import ConnectionRegistry
from tests.mocks.websocket_mocks import create_registered_connection


def _registry_with(*connections):
    registry = ConnectionRegistry()
    for connection in connections:
        registry.insert(connection.id, connection)
    return registry


class TestDispatchSingle:
    """Tests for dispatching to one connection id."""

    @pytest.mark.asyncio
    async def test_dispatch_to_unknown_id_is_not_found(self):
        dispatcher = Dispatcher(ConnectionRegistry())

        result = await dispatcher.dispatch(99, "kick", {})

        assert result == NotFound(target=99)

    @pytest.mark.asyncio
    async def test_dispatch_delivers_command_payload(self):
        connection = create_registered_connection(1)
        dispatcher = Dispatcher(_registry_with(connection))

        result = await dispatcher.dispatch(1, "message", {"message": "hi"})

        assert result == Delivered(count=1)
        connection.websocket.send_json.assert_awaited_once_with(
            {
                "action": "command",
                "command": "message",
                "params": {"message": "hi"},
            }
        )

    @pytest.mark.asyncio
    async def test_params_default_to_empty_object(self):
        connection = create_registered_connection(1)
        dispatcher = Dispatcher(_registry_with(connection))

        await dispatcher.dispatch(1, "rejoin")

        sent = connection.websocket.send_json.call_args[0][0]
        assert sent["params"] == {}

    @pytest.mark.asyncio
    async def test_dispatch_to_closed_transport_is_not_found(self):
        """A stale connection is indistinguishable from an absent one."""
        connection = create_registered_connection(1)
        connection.websocket.client_state = WebSocketState.DISCONNECTED
        dispatcher = Dispatcher(_registry_with(connection))

        result = await dispatcher.dispatch(1, "message", {})

        assert result == NotFound(target=1)
        connection.websocket.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_write_failure_is_not_found_and_closes(self):
        connection = create_registered_connection(1)
        connection.websocket.send_json = AsyncMock(
            side_effect=WebSocketDisconnect(code=1001)
        )
        registry = _registry_with(connection)
        dispatcher = Dispatcher(registry)

        result = await dispatcher.dispatch(1, "message", {})

        assert result == NotFound(target=1)
        assert connection.is_open is False
        connection.websocket.close.assert_awaited_once()
        # The dispatcher never mutates the registry
        assert registry.get(1) is connection

    @pytest.mark.asyncio
    async def test_unexpected_write_error_is_contained(self):
        connection = create_registered_connection(1)
        connection.websocket.send_json = AsyncMock(
            side_effect=ValueError("boom")
        )
        dispatcher = Dispatcher(_registry_with(connection))

        result = await dispatcher.dispatch(1, "message", {})

        assert result == NotFound(target=1)


class TestDispatchBroadcast:
    """Tests for dispatching to "all"."""

    @pytest.mark.asyncio
    async def test_broadcast_with_no_agents_delivers_zero(self):
        dispatcher = Dispatcher(ConnectionRegistry())

        result = await dispatcher.dispatch("all", "message", {})

        assert result == Delivered(count=0)

    @pytest.mark.asyncio
    async def test_broadcast_to_all_open_agents(self):
        connections = [create_registered_connection(i) for i in (1, 2, 3)]
        dispatcher = Dispatcher(_registry_with(*connections))

        result = await dispatcher.dispatch("all", "message", {"message": "hi"})

        assert result == Delivered(count=3)
        for connection in connections:
            connection.websocket.send_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_broadcast_skips_closed_agents(self):
        """N registered, M closed -> N - M delivered."""
        open_connections = [create_registered_connection(i) for i in (1, 2, 3)]
        closed_connections = [
            create_registered_connection(i, open=False) for i in (4, 5)
        ]
        dispatcher = Dispatcher(
            _registry_with(*open_connections, *closed_connections)
        )

        result = await dispatcher.dispatch("all", "message", {})

        assert result == Delivered(count=3)
        for connection in closed_connections:
            connection.websocket.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcast_isolates_write_failures(self):
        failing = create_registered_connection(1)
        failing.websocket.send_json = AsyncMock(
            side_effect=RuntimeError("Connection closed")
        )
        unexpected = create_registered_connection(2)
        unexpected.websocket.send_json = AsyncMock(side_effect=Exception("?"))
        healthy = create_registered_connection(3)
        registry = _registry_with(failing, unexpected, healthy)
        dispatcher = Dispatcher(registry)

        result = await dispatcher.dispatch("all", "message", {})

        assert result == Delivered(count=1)
        healthy.websocket.send_json.assert_awaited_once()
        assert failing.is_open is False
        assert unexpected.is_open is False
        assert len(registry) == 3
