from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator


class ModerationMode(Enum):
    REVIEW = "review"
    IMAGE_ONLY = "image_only"
    AVATAR = "avatar"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "ModerationMode":
        """Unknown or missing modes fall back to review."""
        try:
            return cls(value)
        except ValueError:
            return cls.REVIEW

    @property
    def image_required(self) -> bool:
        return self is not ModerationMode.REVIEW


# one fixed policy prompt per mode
POLICY_PROMPTS = MappingProxyType({
    ModerationMode.REVIEW: "moderation/review@v1",
    ModerationMode.IMAGE_ONLY: "moderation/image_only@v1",
    ModerationMode.AVATAR: "moderation/avatar@v1",
})


# Input types
class ModerationRequest(BaseModel):
    """Inbound request body. ``imageBase64``/``moderationType`` are accepted for older clients."""
    model_config = ConfigDict(populate_by_name=True)

    review_text: Optional[str] = Field(None, validation_alias=AliasChoices("reviewText", "review_text"))
    image_data: Optional[str] = Field(None, validation_alias=AliasChoices("imageData", "imageBase64", "image_data"))
    mode: Optional[str] = Field("review", validation_alias=AliasChoices("mode", "moderationType"))

    @property
    def has_text(self) -> bool:
        return bool(self.review_text and self.review_text.strip())

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)


# Outbound message parts
class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str

class ImageURL(BaseModel):
    url: str
    detail: Optional[Literal["low", "high", "auto"]] = None

class ImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageURL

MessagePart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]

class ChatMessage(BaseModel):
    role: Literal["system", "user"]
    content: Union[str, List[MessagePart]]


# Output types
class ModerationVerdict(BaseModel):
    safe: StrictBool
    reason: StrictStr = ""

    @field_validator("reason", mode="before")
    @classmethod
    def _null_reason(cls, value):
        return "" if value is None else value

@dataclass(frozen=True)
class VerdictParseError:
    raw: str
    error: str

@dataclass(frozen=True)
class GatewayResult:
    status_code: int
    verdict: ModerationVerdict
