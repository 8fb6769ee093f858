"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends

from ..models.common import HealthStatus
from ..dependencies.gateway import get_model_manager
from moderation_gateway import __version__
from moderation_gateway.models.manager import ModelManager
from moderation_gateway.pipeline.moderation.types import POLICY_PROMPTS

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

MODERATION_TASK = "moderation"

@router.get("/", response_model=HealthStatus)
async def health_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Basic health check endpoint.

    Reports whether the moderation credential is present and the policy
    prompts load. Does not call the upstream model.
    """

    uptime = time.time() - _server_start_time
    dependencies = {}

    try:
        if model_manager.has_credentials(MODERATION_TASK):
            dependencies["moderation_credentials"] = "✅ Configured"
        else:
            dependencies["moderation_credentials"] = "❌ Missing API key"
    except Exception as e:
        dependencies["moderation_credentials"] = f"❌ Error: {str(e)}"

    try:
        for prompt_ref in POLICY_PROMPTS.values():
            model_manager.prompts.load_prompt(prompt_ref)
        dependencies["policy_prompts"] = f"✅ Loaded ({len(POLICY_PROMPTS)} prompts)"
    except Exception as e:
        dependencies["policy_prompts"] = f"❌ Error: {str(e)}"

    stats = model_manager.get_stats(MODERATION_TASK)
    if stats:
        dependencies["moderation_calls"] = f"{stats['successful_calls']}/{stats['total_calls']} successful"

    status = "healthy" if all(not value.startswith("❌") for value in dependencies.values()) else "degraded"

    return HealthStatus(
        status=status,
        version=__version__,
        uptime=uptime,
        dependencies=dependencies
    )

@router.get("/ready")
async def readiness_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Readiness probe for container deployments.

    Without a credential every moderation request fails with 500, so the
    service is not ready.
    """
    if not model_manager.has_credentials(MODERATION_TASK):
        return {"ready": False, "reason": "Moderation API key not configured"}

    return {"ready": True, "message": "Service ready to handle requests"}
