"""
Custom exception classes for the agent hub.

Each class maps to one failure category of the connection registry and
command-dispatch core. None of them is allowed to terminate the server:
connection-level errors stay at the connection boundary and operator
requests always get a structured response.
"""


class MalformedMessageError(Exception):
    """
    Inbound agent payload could not be parsed into the expected shape.

    Raised by the lifecycle handler, logged and discarded; the connection
    stays open.
    """

    pass


class TargetNotFoundError(Exception):
    """
    Dispatch target is absent from the registry or its transport is closed.

    Surfaced to operators as a non-fatal 404 response.
    """

    def __init__(self, target: int | str):
        self.target = target
        super().__init__(f"Client {target} not found or disconnected")


class InternalInvariantViolation(Exception):
    """
    Internal registry invariant was broken (e.g. id collision on insert).

    Logged where detected and never propagated to external callers.
    """

    pass


class TransportWriteError(Exception):
    """
    Write to a single agent connection failed.

    Isolated per target; folded into the delivered-count accounting.
    """

    def __init__(self, connection_id: int, cause: BaseException):
        self.connection_id = connection_id
        self.cause = cause
        super().__init__(
            f"Failed to write to connection {connection_id}: {cause}"
        )
