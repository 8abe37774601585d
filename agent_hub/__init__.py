# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agent_hub.logging import logger
from agent_hub.middlewares.correlation_id import CorrelationIDMiddleware
from agent_hub.routing import collect_subrouters
from agent_hub.settings import app_settings
from agent_hub.state import HubState


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    The registry lives only in memory: it starts empty and every agent has
    to reconnect and register again after a restart.
    """
    logger.info(
        f"Agent hub starting, agents connect on "
        f"ws://{app_settings.HOST}:{app_settings.PORT}{app_settings.WS_PATH}"
    )
    yield

    hub: HubState = app.state.hub
    connections = hub.registry.snapshot()
    if connections:
        logger.info(f"Closing {len(connections)} agent connections")
        for connection in connections:
            await connection.close()
    logger.info("Agent hub shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Creates a fresh `HubState` (id allocator, registry and dispatcher) on
    `app.state.hub`, includes the routers collected by
    `agent_hub.routing.collect_subrouters()` and adds the
    `CorrelationIDMiddleware` for operator requests.
    """
    app = FastAPI(
        title="Agent Hub",
        description="Connection registry and command dispatch for game agents",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.hub = HubState()

    app.include_router(collect_subrouters())

    app.add_middleware(CorrelationIDMiddleware)

    return app
