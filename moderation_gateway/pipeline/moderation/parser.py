from typing import Union

from pydantic import ValidationError

from .types import ModerationVerdict, VerdictParseError


def strip_code_fences(content: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker, then trim."""
    text = content.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[len("```"):]
    if text.endswith("```"):
        text = text[:-len("```")]
    return text.strip()


def parse_verdict(content: str) -> Union[ModerationVerdict, VerdictParseError]:
    """
    Decode the model's reply into a verdict.

    Returns a VerdictParseError instead of raising when the reply is not a
    JSON object matching ``{"safe": bool, "reason": str}``.
    """
    text = strip_code_fences(content)
    try:
        return ModerationVerdict.model_validate_json(text)
    except ValidationError as e:
        return VerdictParseError(raw=content, error=str(e))
