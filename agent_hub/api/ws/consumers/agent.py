from fastapi import APIRouter

from agent_hub.api.ws.websocket import AgentWebSocketEndpoint
from agent_hub.settings import app_settings

router = APIRouter()


@router.websocket_route(app_settings.WS_PATH)
class Agent(AgentWebSocketEndpoint):
    """
    Agent channel mounted at WS_PATH (``/ws`` by default).

    Game clients connect here, receive their id, register, and then wait
    for operator commands.
    """
