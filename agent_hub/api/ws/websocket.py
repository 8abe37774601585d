from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket

from agent_hub.api.ws.lifecycle import ConnectionLifecycle
from agent_hub.exceptions import TransportWriteError
from agent_hub.logging import logger
from agent_hub.state import HubState
from agent_hub.utils.metrics import (
    agent_connections_active,
    agent_connections_total,
)


class AgentWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint for agent connections.

    Agents connect without authentication. Each connection is driven by its
    own `ConnectionLifecycle` inside the task Starlette runs for the
    endpoint; the shared `HubState` is taken from the application.
    """

    encoding = None  # Text and binary frames are both decoded as JSON

    lifecycle: ConnectionLifecycle | None = None

    @property
    def hub(self) -> HubState:
        return self.scope["app"].state.hub

    async def dispatch(self) -> None:
        """
        Runs the connection from accept to close.

        Errors are contained here: a failure on one connection is logged,
        the connection is closed, and the server keeps running.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            await self.on_connect(websocket)

            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = message.get("text")
                    if data is None:
                        data = message.get("bytes")
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except TransportWriteError as exc:
            logger.warning(f"Agent connection lost: {exc}")
            close_code = status.WS_1006_ABNORMAL_CLOSURE
            await self._close(status.WS_1011_INTERNAL_ERROR)
        except Exception:
            # Catch-all so one broken connection never takes the server down
            logger.error("Unexpected error on agent connection", exc_info=True)
            close_code = status.WS_1011_INTERNAL_ERROR
            await self._close(close_code)
        finally:
            await self.on_disconnect(websocket, close_code)

    async def _close(self, close_code: int) -> None:
        if self.lifecycle and self.lifecycle.connection:
            await self.lifecycle.connection.close(code=close_code)

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Accepts the connection and assigns it an id.
        """
        await websocket.accept()
        agent_connections_active.inc()

        self.lifecycle = ConnectionLifecycle(self.hub, websocket)
        try:
            await self.lifecycle.on_accept()
        except TransportWriteError:
            agent_connections_total.labels(status="failed_assign").inc()
            raise
        agent_connections_total.labels(status="accepted").inc()

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        if self.lifecycle is None:
            return
        await self.lifecycle.on_message(data)

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        if self.lifecycle is None:
            return

        await self.lifecycle.on_close(close_code)
        agent_connections_active.dec()
