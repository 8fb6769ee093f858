"""
FastAPI application entry point.

Builds the app, wires the routers and owns the ModelManager for the
lifetime of the process.
"""

import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from .routers import health, moderation
from moderation_gateway import __version__
from moderation_gateway.models.manager import ModelManager

logger = logging.getLogger(__name__)

# Global application state
app_state = {}

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    The ModelManager (config, prompts, provider clients) is created once at
    startup and its provider clients are closed at shutdown.
    """
    logger.info("Starting moderation gateway...")

    model_manager = ModelManager()
    app_state["model_manager"] = model_manager
    if not model_manager.has_credentials("moderation"):
        logger.warning("Moderation API key is not configured; moderation requests will fail with 500")

    logger.info("Moderation gateway ready to accept requests")

    yield  # Server runs here

    logger.info("Shutting down moderation gateway...")
    model_manager.cleanup()
    app_state.clear()

def create_app() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """

    app = FastAPI(
        title="Halal Review Moderation Gateway",
        description="Screens review text, review photos and avatars with a vision-language model",
        version=__version__,
        lifespan=lifespan
    )

    # CORS headers are set by the moderation router itself so that they are
    # present on every response, not only on cross-origin ones.
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(moderation.router, prefix="/moderate-review", tags=["moderation"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": "Halal Review Moderation Gateway",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "moderation": "/moderate-review",
                "docs": "/docs",
            }
        }

    return app

# Create the FastAPI app instance
app = create_app()
