from __future__ import annotations
from typing import Dict, Any, Optional
import time
import logging
from os import getenv

from openai import OpenAI
from openai import APIStatusError, APITimeoutError, APIConnectionError

from .base import ModelProvider, ChatRequest, ModelResponse, ModelError, ModelStatusError, ModelTimeout

logger = logging.getLogger(__name__)


def resolve_api_key(api_key: Optional[str] = None, api_key_env: str = "OPENAI_API_KEY") -> Optional[str]:
    """Explicit key wins, otherwise read it from the environment. Blank counts as missing."""
    key = api_key or getenv(api_key_env)
    if key is None or not key.strip():
        return None
    return key


class OpenAIProvider(ModelProvider):
    """
    Chat-completions provider backed by the official OpenAI SDK.

    The SDK's own retry loop is disabled by default: a moderation check is a
    single round trip and upstream failures are mapped by the caller.
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, api_key_env: str = "OPENAI_API_KEY", default_headers: Optional[Dict[str, str]] = None, timeout: float = 20.0, max_retries: int = 0, **kwargs):
        key = resolve_api_key(api_key, api_key_env)
        if key is None:
            raise ModelError(f"No API key configured (expected ${api_key_env})")
        self.client = OpenAI(
            base_url=base_url,
            api_key=key,
            default_headers=default_headers or {},
            timeout=timeout,
            max_retries=max_retries,
            **kwargs
        )
        self.base_url = base_url
        self.timeout = timeout

    def chat(self, req: ChatRequest) -> ModelResponse:
        params = dict(req.params or {})

        completion_params = {
            "model": req.model,
            "messages": req.messages,
            **params
        }

        if req.json_mode:
            completion_params["response_format"] = {"type": "json_object"}

        t0 = time.perf_counter()
        try:
            response = self.client.chat.completions.create(**completion_params)
        except APITimeoutError as e:
            raise ModelTimeout(f"OpenAI timeout after {self.timeout}s: {e}") from e
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            raise ModelStatusError(e.status_code, body) from e
        except APIConnectionError as e:
            raise ModelError(f"OpenAI connection failed: {e}") from e
        except Exception as e:
            raise ModelError(f"OpenAI provider error: {e}") from e

        dt = time.perf_counter() - t0

        # an empty choices list or a null message is reported as empty content
        content = ""
        if getattr(response, "choices", None):
            message = getattr(response.choices[0], "message", None)
            content = (getattr(message, "content", None) or "") if message is not None else ""

        meta = {
            "provider": "openai",
            "model": getattr(response, "model", req.model),
            "latency": dt,
            "base_url": self.base_url or "https://api.openai.com/v1",
            "timeout": self.timeout
        }

        if getattr(response, "usage", None):
            try:
                meta["usage"] = response.usage.model_dump()
            except AttributeError:
                meta["usage"] = {
                    "prompt_tokens": getattr(response.usage, 'prompt_tokens', None),
                    "completion_tokens": getattr(response.usage, 'completion_tokens', None),
                    "total_tokens": getattr(response.usage, 'total_tokens', None)
                }

        if getattr(response, "choices", None):
            meta["finish_reason"] = getattr(response.choices[0], 'finish_reason', None)

        if hasattr(response, 'id'):
            meta["id"] = response.id

        return ModelResponse(content=content, raw=response, meta=meta)

    def cleanup(self):
        self.client.close()
