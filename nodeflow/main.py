"""Main entry point for the workflow engine server."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, get_settings
from .engine.llm_provider import TextCompletion
from .engine.node_registry import create_default_registry
from .routes import api_router, webhook_router
from .schemas.common import RootResponse, HealthResponse
from .services import ExecutionService, NodeService, TriggerRegistry, WorkflowService
from .storage import ExecutionStore, WorkflowStore

logger = logging.getLogger(__name__)


def _build_lifespan(settings: Settings, llm: TextCompletion | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        node_registry = create_default_registry()
        workflow_store = WorkflowStore()
        execution_service = ExecutionService(
            workflow_store,
            ExecutionStore(max_records=settings.max_execution_records),
            node_registry,
            llm=llm,
            settings=settings,
        )
        trigger_registry = TriggerRegistry(
            node_registry, launcher=execution_service.launch, settings=settings
        )

        app.state.trigger_registry = trigger_registry
        app.state.execution_service = execution_service
        app.state.workflow_service = WorkflowService(workflow_store, trigger_registry, node_registry)
        app.state.node_service = NodeService(node_registry)

        logger.info(
            "%s v%s started with %d node types",
            settings.app_name, settings.app_version, len(node_registry.list()),
        )
        logger.info("Running on http://%s:%s", settings.host, settings.port)

        yield

        await trigger_registry.cleanup()
        await execution_service.shutdown()
        logger.info("%s stopped", settings.app_name)

    return lifespan


def create_app(settings: Settings | None = None, llm: TextCompletion | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-derived ones
        llm: Text-completion backend for agent nodes; the SDK-backed one when omitted
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Node-based workflow automation engine with trigger registry",
        version=settings.app_version,
        lifespan=_build_lifespan(settings, llm),
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Include routers
    app.include_router(api_router)
    app.include_router(webhook_router, tags=["Webhooks"])

    # Root endpoints
    @app.get("/", response_model=RootResponse)
    async def root() -> RootResponse:
        """Root endpoint."""
        return RootResponse(
            name=settings.app_name,
            version=settings.app_version,
            status="running",
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            active_triggers=app.state.trigger_registry.statistics().total_triggers,
        )

    return app


def main() -> None:
    """Run the server."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(
        "nodeflow.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
