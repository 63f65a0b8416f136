"""FastAPI application entry point for the Agent Autopilot.

Lifecycle:
    1. Startup: Initialize logging, build the service container (database,
       Redis, HTTP client, ledger, treasury, engine) and start the engine
       when autostart is enabled.
    2. Running: Serve REST API + MCP tools on a single Uvicorn process.
    3. Shutdown: Stop the engine, wait for an in-flight cycle, then close
       Redis, the HTTP client and the database.

The MCP server is mounted at /mcp so agent clients can discover tools
alongside the REST API at /api/v1/*.

Run with:
    uvicorn agent_autopilot.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from agent_autopilot import __version__
from agent_autopilot.config import get_settings
from agent_autopilot.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info("app.starting", env=settings.app_env, debug=settings.app_debug)

    from agent_autopilot.mcp_server.tools import bind_container
    from agent_autopilot.services.container import build_container

    container = await build_container(settings)
    app.state.container = container
    bind_container(container)

    if settings.autopilot_autostart:
        await container.engine.start()

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    logger.info("app.shutting_down")
    bind_container(None)
    await container.aclose()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Application factory — creates and configures the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Agent Autopilot",
        description=(
            "Recurring task discovery, matching and bidding for an agent squadron, "
            "with a durable bid ledger and human oversight of treasury spends."
        ),
        version=__version__,
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    from agent_autopilot.api.middleware import setup_middleware

    setup_middleware(app)

    from agent_autopilot.api.routes.autopilot import router as autopilot_router
    from agent_autopilot.api.routes.health import router as health_router
    from agent_autopilot.api.routes.treasury import router as treasury_router
    from agent_autopilot.api.routes.webhook import router as webhook_router

    app.include_router(health_router)
    app.include_router(autopilot_router)
    app.include_router(treasury_router)
    app.include_router(webhook_router)

    from agent_autopilot.mcp_server.tools import mcp

    app.mount("/mcp", mcp.sse_app())

    return app


# The app instance used by Uvicorn
app = create_app()
