"""
Message shapes exchanged with agents over the WebSocket channel.

Server to agent:
    {"action": "assignId", "id": 1}
    {"action": "command", "command": "message", "params": {"message": "hi"}}

Agent to server:
    {"action": "register", "userId": "42", "username": "Bob",
     "jobId": "job-1", "gameName": "Game"}
"""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agent_hub.schemas.agent import AgentIdentity


class AgentAction(StrEnum):
    """Values of the ``action`` discriminator of every agent message."""

    ASSIGN_ID = "assignId"
    REGISTER = "register"
    COMMAND = "command"


class AssignIdMessage(BaseModel):  # type: ignore[misc]
    action: Literal["assignId"] = "assignId"
    id: int


class RegisterMessage(AgentIdentity):  # type: ignore[misc]
    model_config = ConfigDict(extra="ignore")

    action: Literal["register"]
    # Agents may echo back the id they were assigned
    id: int | None = None

    def to_identity(self) -> AgentIdentity:
        return AgentIdentity.model_validate(
            self.model_dump(include=set(AgentIdentity.model_fields))
        )


class CommandMessage(BaseModel):  # type: ignore[misc]
    action: Literal["command"] = "command"
    command: str
    params: dict[str, Any] = Field(default_factory=dict)
