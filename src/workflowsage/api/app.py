"""
Workflow Sage FastAPI Application.

Chat API that drives workflow-mapping conversations.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflowsage import __version__
from workflowsage.api.routes import chats
from workflowsage.api.schemas import HealthResponse
from workflowsage.config import settings
from workflowsage.conversation import WorkflowOrchestrator
from workflowsage.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Initializes logging and, unless an orchestrator was injected, creates the
    database schema and builds the orchestrator from settings.
    """
    # Initialize logging first
    setup_logging(context="api")

    if getattr(app.state, "orchestrator", None) is None:
        from workflowsage.db.connection import init_db
        from workflowsage.store import SqlChatStore

        logger.info("Initializing database schema...")
        init_db()
        app.state.orchestrator = WorkflowOrchestrator.from_settings(SqlChatStore())
        logger.info(
            f"✓ Orchestrator ready (provider: {settings.llm_provider}, "
            f"model: {settings.llm_model})"
        )

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


def create_app(orchestrator: Optional[WorkflowOrchestrator] = None) -> FastAPI:
    """Build the API application.

    Args:
        orchestrator: Pre-built orchestrator; when omitted one is built from
            settings on startup

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        lifespan=lifespan,
        title="Workflow Sage API",
        description="API for mapping business workflows and finding AI opportunities",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    if orchestrator is not None:
        app.state.orchestrator = orchestrator

    # Configure CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint - API health check."""
        return {
            "status": "ok",
            "message": "Workflow Sage API is running",
            "version": __version__,
        }

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        from workflowsage.db.connection import check_connection

        db_status = "healthy" if check_connection() else "unhealthy"

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            database=db_status,
        )

    app.include_router(chats.router, prefix="", tags=["chats"])
    return app


app = create_app()
