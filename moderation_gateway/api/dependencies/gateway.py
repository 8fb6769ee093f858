"""
Gateway dependencies.

The ModelManager is created once in the application lifespan; a gateway
is cheap and stateless, so one is built per request around it.
"""

from fastapi import Depends

from moderation_gateway.models.manager import ModelManager
from moderation_gateway.pipeline.moderation.gateway import ModerationGateway


def get_model_manager() -> ModelManager:
    """FastAPI dependency to get the model manager from app state."""
    from ..main import app_state
    return app_state["model_manager"]

def get_gateway(model_manager: ModelManager = Depends(get_model_manager)) -> ModerationGateway:
    """FastAPI dependency to get a moderation gateway bound to the model manager."""
    return ModerationGateway(model_manager)
