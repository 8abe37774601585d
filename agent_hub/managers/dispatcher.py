import asyncio
from typing import Any, Literal

from pydantic import BaseModel

from agent_hub.constants import ALL_TARGETS
from agent_hub.exceptions import TargetNotFoundError, TransportWriteError
from agent_hub.logging import logger
from agent_hub.managers.connection import AgentConnection
from agent_hub.managers.registry import ConnectionRegistry
from agent_hub.schemas.messages import CommandMessage
from agent_hub.utils.metrics import (
    agent_commands_not_found_total,
    agent_commands_sent_total,
)

DispatchTarget = int | Literal["all"]


class Delivered(BaseModel):  # type: ignore[misc]
    """Command was written to `count` open agent connections."""

    count: int


class NotFound(BaseModel):  # type: ignore[misc]
    """Single target was absent from the registry or not open."""

    target: int


DispatchResult = Delivered | NotFound


class Dispatcher:
    """
    Routes operator commands to registered agents.

    Delivery is fire-and-forget: a command is written to every targeted
    connection that is open at the time of the write, without waiting for
    an acknowledgment and without retrying or queueing missed deliveries.
    The dispatcher never mutates the registry.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    async def dispatch(
        self,
        target: DispatchTarget,
        command: str,
        params: dict[str, Any] | None = None,
    ) -> DispatchResult:
        """
        Sends `{action: "command", command, params}` to the target(s).

        Args:
            target: A connection id, or "all" to broadcast.
            command: Opaque command name understood by agents.
            params: Opaque payload forwarded verbatim (defaults to {}).

        Returns:
            `Delivered` with the number of successful writes, or `NotFound`
            when a single target could not be written to.
        """
        message = CommandMessage(command=command, params=params or {})

        if target == ALL_TARGETS:
            return await self._broadcast(message)

        try:
            await self._send_one(target, message)
        except TargetNotFoundError:
            agent_commands_not_found_total.inc()
            logger.info(f"Command '{command}' target {target} not found")
            return NotFound(target=target)

        agent_commands_sent_total.labels(target="single").inc()
        logger.info(f"Command '{command}' sent to client {target}")
        return Delivered(count=1)

    def _resolve(self, target: int) -> AgentConnection:
        connection = self.registry.get(target)
        if connection is None or not connection.is_open:
            raise TargetNotFoundError(target)
        return connection

    async def _send_one(self, target: int, message: CommandMessage) -> None:
        connection = self._resolve(target)
        try:
            await connection.send(message)
        except TransportWriteError as e:
            logger.warning(str(e))
            await connection.close()
            raise TargetNotFoundError(target) from e
        except Exception as e:
            # Catch-all for unexpected send errors
            logger.warning(
                f"Unexpected error sending to connection {target}: {e}"
            )
            await connection.close()
            raise TargetNotFoundError(target) from e

    async def _broadcast(self, message: CommandMessage) -> Delivered:
        connections = self.registry.snapshot()

        async def safe_send(connection: AgentConnection) -> bool:
            """
            Sends to one connection, isolating any failure.

            Returns:
                True if the write succeeded.
            """
            if not connection.is_open:
                return False
            try:
                await connection.send(message)
            except TransportWriteError as e:
                logger.warning(str(e))
                await connection.close()
                return False
            except Exception as e:
                # Catch-all for unexpected send errors
                logger.warning(
                    f"Unexpected error sending to connection {connection.id}: {e}"
                )
                await connection.close()
                return False
            return True

        results = await asyncio.gather(
            *[safe_send(connection) for connection in connections],
            return_exceptions=True,
        )
        count = sum(1 for result in results if result is True)

        agent_commands_sent_total.labels(target="broadcast").inc(count)
        logger.info(
            f"Command '{message.command}' sent to {count} of "
            f"{len(connections)} clients"
        )
        return Delivered(count=count)
