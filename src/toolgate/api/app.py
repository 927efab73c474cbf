"""FastAPI application factory for the toolgate HTTP API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from toolgate.config.schema import ToolgateConfig
    from toolgate.providers.base import ChatModel
    from toolgate.session import Scheduler
    from toolgate.tools.registry import ToolRegistry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the tool registry, execution table, and agent once per process."""
    from toolgate.agent import ChatAgent
    from toolgate.cli.app import _setup_model, _setup_tools

    config: ToolgateConfig = app.state.config
    registry: ToolRegistry | None = app.state.registry
    if registry is None:
        registry = _setup_tools()
    model: ChatModel | None = app.state.model
    if model is None:
        model = _setup_model(config)

    app.state.registry = registry
    app.state.model = model
    app.state.executions = registry.execution_table()
    app.state.agent = (
        ChatAgent(
            model,
            registry,
            max_steps=config.agent.max_steps,
            system_prompt=config.agent.system_prompt,
        )
        if model is not None
        else None
    )

    yield


def create_app(
    config: ToolgateConfig | None = None,
    *,
    registry: ToolRegistry | None = None,
    model: ChatModel | None = None,
    scheduler: Scheduler | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    from toolgate import __version__
    from toolgate.config.loader import load_config

    if config is None:
        config = load_config()

    app = FastAPI(
        title="toolgate",
        description="Human-in-the-loop tool call reconciliation API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.registry = registry
    app.state.model = model
    app.state.scheduler = scheduler
    app.state.agent = None

    from fastapi.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from toolgate.api.health import router as health_router
    from toolgate.api.routes.chat import router as chat_router
    from toolgate.api.routes.tools import router as tools_router

    app.include_router(chat_router)
    app.include_router(tools_router)
    app.include_router(health_router)

    return app
