"""
Moderation gateway: validates a moderation request, asks the configured
vision-language model for a verdict and normalizes its answer.

Failure policy:
- missing credential, blank review text, upstream 429/402 block the submission
  with a matching status code;
- any other upstream failure, or an empty reply, allows the submission so a
  moderation outage never blocks legitimate content;
- an unparsable reply, or any unexpected exception, blocks with a retry reason.
"""

import logging
from typing import List

from moderation_gateway.models.manager import ModelManager
from moderation_gateway.models.providers.base import ModelStatusError
from moderation_gateway.utils.image_converter import to_data_url
from .parser import parse_verdict
from .types import (
    ChatMessage,
    GatewayResult,
    ImagePart,
    ImageURL,
    ModerationMode,
    ModerationRequest,
    ModerationVerdict,
    POLICY_PROMPTS,
    TextPart,
    VerdictParseError,
)

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REASON = "Content moderation service is not configured. Please contact support."
TEXT_REQUIRED_REASON = "Review text is required."
RATE_LIMITED_REASON = "Content moderation is temporarily unavailable. Please try again in a moment."
BILLING_REASON = "Content moderation service needs attention. Please try again later."
UNVERIFIED_REASON = "Unable to verify content. Please try again."
FLAGGED_REASON = "This content does not meet our community guidelines."

# upstream statuses that mean the check could not run and must not default to safe
DEGRADED_STATUS_REASONS = {
    429: RATE_LIMITED_REASON,
    402: BILLING_REASON,
}


def _allow() -> GatewayResult:
    return GatewayResult(status_code=200, verdict=ModerationVerdict(safe=True, reason=""))

def _block(status_code: int, reason: str) -> GatewayResult:
    return GatewayResult(status_code=status_code, verdict=ModerationVerdict(safe=False, reason=reason))


class ModerationGateway:
    def __init__(self, model_manager: ModelManager, task: str = "moderation", image_detail: str = "low"):
        self.model_manager = model_manager
        self.task = task
        self.image_detail = image_detail

    def moderate(self, payload: bytes) -> GatewayResult:
        """Handle one raw request body. Never raises."""
        try:
            return self._moderate(payload)
        except Exception:
            logger.exception("Moderation error")
            return _block(200, UNVERIFIED_REASON)

    def _moderate(self, payload: bytes) -> GatewayResult:
        if not self.model_manager.has_credentials(self.task):
            logger.error("Moderation API key is not configured")
            return _block(500, NOT_CONFIGURED_REASON)

        request = ModerationRequest.model_validate_json(payload)
        mode = ModerationMode.resolve(request.mode)

        if mode.image_required and not request.has_image:
            return _allow()

        if mode is ModerationMode.REVIEW and not request.has_text:
            return _block(400, TEXT_REQUIRED_REASON)

        text_length = len(request.review_text) if request.review_text else 0
        logger.info(f"Moderating content: mode={mode.value} text_length={text_length} has_image={request.has_image}")

        messages = self.build_messages(mode, request)

        try:
            response = self.model_manager.call(
                task=self.task,
                messages=[message.model_dump(exclude_none=True) for message in messages],
            )
        except ModelStatusError as e:
            logger.error(f"Moderation API error: {e.status_code} {e.body[:500]}")
            if e.status_code in DEGRADED_STATUS_REASONS:
                return _block(e.status_code, DEGRADED_STATUS_REASONS[e.status_code])
            return _allow()

        if not response.content or not response.content.strip():
            logger.error(f"No content in moderation response: {response.meta}")
            return _allow()

        logger.debug(f"Moderation raw result: {response.content}")

        outcome = parse_verdict(response.content)
        if isinstance(outcome, VerdictParseError):
            logger.warning(f"Could not parse moderation verdict: {outcome.error}")
            return _block(200, UNVERIFIED_REASON)

        if not outcome.safe and not outcome.reason.strip():
            # unsafe verdicts always carry a user-facing reason
            outcome = ModerationVerdict(safe=False, reason=FLAGGED_REASON)

        logger.info(f"Moderation verdict: safe={outcome.safe}")
        return GatewayResult(status_code=200, verdict=outcome)

    def build_messages(self, mode: ModerationMode, request: ModerationRequest) -> List[ChatMessage]:
        """One system message with the policy prompt, then the text instruction and optional image."""
        system, user = self.model_manager.prompts.render(
            POLICY_PROMPTS[mode],
            {"review_text": request.review_text or ""},
        )

        parts = [TextPart(text=user["content"])]
        if request.has_image:
            parts.append(ImagePart(image_url=ImageURL(url=to_data_url(request.image_data), detail=self.image_detail)))

        return [
            ChatMessage(role="system", content=system["content"]),
            ChatMessage(role="user", content=parts),
        ]
