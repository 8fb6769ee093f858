"""
API models for the moderation endpoint.

The request body is decoded by the gateway itself so that malformed bodies
still produce a verdict; these models document the contract in OpenAPI.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from moderation_gateway.pipeline.moderation.types import ModerationVerdict


class ModerationRequestBody(BaseModel):
    """Moderation request as sent by the web client."""
    reviewText: Optional[str] = Field(None, description="Review text; required in review mode")
    imageData: Optional[str] = Field(None, description="Base64 image or data URL")
    mode: Optional[Literal["review", "image_only", "avatar"]] = Field("review", description="Moderation policy to apply")

    model_config = {
        "json_schema_extra": {
            "example": {
                "reviewText": "Great shawarma, and the virgin mojito was lovely.",
                "imageData": "data:image/jpeg;base64,/9j/4AAQSkZJRg...",
                "mode": "review"
            }
        }
    }


class ModerationResponse(ModerationVerdict):
    """Safety verdict returned to the client."""

    model_config = {
        "json_schema_extra": {
            "example": {"safe": False, "reason": "Review contains inappropriate language."}
        }
    }
