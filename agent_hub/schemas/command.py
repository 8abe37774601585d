from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agent_hub.constants import ALL_TARGETS


class SendCommandRequest(BaseModel):  # type: ignore[misc]
    """
    Operator request to send a command to one agent or to every agent.

    Fields are optional at the schema level so that the endpoint can answer
    missing values with a 400 instead of a validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    client_id: int | Literal["all"] | None = Field(None, alias="clientId")
    command: str | None = None
    params: dict[str, Any] | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id) and bool(self.command)

    @property
    def is_broadcast(self) -> bool:
        return self.client_id == ALL_TARGETS


class CommandResponse(BaseModel):  # type: ignore[misc]
    success: bool
    message: str | None = None
    error: str | None = None

    @classmethod
    def ok_msg(cls, message: str) -> "CommandResponse":
        return cls(success=True, message=message)

    @classmethod
    def err_msg(cls, error: str) -> "CommandResponse":
        return cls(success=False, error=error)
