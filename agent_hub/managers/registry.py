import itertools
import threading
from collections.abc import Iterator

from agent_hub.exceptions import InternalInvariantViolation
from agent_hub.logging import logger
from agent_hub.managers.connection import AgentConnection
from agent_hub.schemas.agent import ConnectionSummary


class IdAllocator:
    """
    Process-wide allocator of connection ids.

    Ids start at 1, strictly increase and are never handed out twice, even
    after the connection that held one has closed.
    """

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


class ConnectionRegistry:
    """
    Directory of registered, dispatch-eligible agent connections.

    Maps connection ids to their `AgentConnection` envelopes, keeping
    insertion order for display. Every operation takes the same lock and
    holds it only for the dictionary access itself, so the registry can be
    shared between connection tasks on the event loop and operator
    requests running in worker threads.
    """

    def __init__(self) -> None:
        """
        Initializes an empty registry.

        The `_connections` attribute maps connection ids to envelopes; it is
        only touched while `_lock` is held.
        """
        self._connections: dict[int, AgentConnection] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._connections

    def insert(self, connection_id: int, connection: AgentConnection) -> bool:
        """
        Adds a registered connection to the directory.

        An id collision or an unregistered envelope means an internal
        invariant is broken; the insert is refused and logged, never
        raised to the caller.

        Args:
            connection_id: The id the connection was assigned on accept.
            connection: The registered envelope.

        Returns:
            True if the entry was added, False if it was refused.
        """
        try:
            if connection_id != connection.id:
                raise InternalInvariantViolation(
                    f"Key {connection_id} does not match connection id "
                    f"{connection.id}"
                )
            if not connection.registered:
                raise InternalInvariantViolation(
                    f"Connection {connection_id} is not registered"
                )
            with self._lock:
                if connection_id in self._connections:
                    raise InternalInvariantViolation(
                        f"Connection id {connection_id} is already in use"
                    )
                self._connections[connection_id] = connection
        except InternalInvariantViolation as e:
            logger.error(f"Registry insert refused: {e}")
            return False

        logger.debug(f"Connection {connection_id} added to registry")
        return True

    def remove(self, connection_id: int) -> AgentConnection | None:
        """
        Removes a connection by id.

        Args:
            connection_id: The id of the connection to remove.

        Returns:
            The removed envelope, or None if the id was not present.
        """
        with self._lock:
            connection = self._connections.pop(connection_id, None)

        if connection is not None:
            logger.debug(f"Connection {connection_id} removed from registry")
        return connection

    def get(self, connection_id: int) -> AgentConnection | None:
        with self._lock:
            return self._connections.get(connection_id)

    def snapshot(self) -> list[AgentConnection]:
        """Point-in-time copy of all registered envelopes."""
        with self._lock:
            return list(self._connections.values())

    def list_all(self) -> Iterator[ConnectionSummary]:
        """
        Lazily yields summaries of all registered connections.

        The set of connections is fixed when this method is called; summaries
        are built as the iterator is consumed.

        Returns:
            Iterator of `ConnectionSummary` in registration order.
        """
        return (connection.summary() for connection in self.snapshot())
