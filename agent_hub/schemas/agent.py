from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AgentIdentity(BaseModel):  # type: ignore[misc]
    """Identity an agent reports about itself when it registers."""

    model_config = ConfigDict(
        populate_by_name=True, coerce_numbers_to_str=True
    )

    user_id: str = Field(..., alias="userId")
    username: str
    job_id: str = Field(..., alias="jobId")
    game_name: str = Field(..., alias="gameName")


class ConnectionSummary(AgentIdentity):  # type: ignore[misc]
    """Operator-facing view of one registered agent connection."""

    id: int
    connected_at: datetime = Field(..., alias="connectedAt")
