"""
Moderation endpoint.

Called by the review form, the photo uploader and the avatar picker before
anything is saved. Every response is a JSON verdict with permissive CORS
headers, since the web client calls this from the browser.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from ..models.moderation import ModerationRequestBody, ModerationResponse
from ..dependencies.gateway import get_gateway
from moderation_gateway.pipeline.moderation.gateway import ModerationGateway

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

@router.post(
    "",
    response_model=ModerationResponse,
    responses={
        400: {"model": ModerationResponse, "description": "Review text missing in review mode"},
        402: {"model": ModerationResponse, "description": "Moderation service billing issue"},
        429: {"model": ModerationResponse, "description": "Moderation temporarily rate-limited"},
        500: {"model": ModerationResponse, "description": "Moderation service misconfigured"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ModerationRequestBody.model_json_schema()}},
        }
    },
)
async def moderate_content(request: Request, gateway: ModerationGateway = Depends(get_gateway)):
    """
    Check review text and/or an image against the policy for its mode.

    The body is handed to the gateway undecoded so a malformed body still
    yields a verdict instead of a validation error.
    """
    body = await request.body()
    result = await run_in_threadpool(gateway.moderate, body)
    return JSONResponse(
        content=result.verdict.model_dump(),
        status_code=result.status_code,
        headers=CORS_HEADERS,
    )

@router.options("")
async def moderation_preflight():
    """CORS pre-flight."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)
