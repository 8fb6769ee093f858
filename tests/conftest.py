import base64
import io

import pytest
from unittest.mock import Mock
from PIL import Image

from moderation_gateway.models.manager import ModelManager
from moderation_gateway.models.providers.base import ModelResponse


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.delenv("MODERATION_CONFIG", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    return "sk-test-key"


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("MODERATION_CONFIG", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def model_manager(monkeypatch):
    """ModelManager on the shipped config and policy prompts."""
    monkeypatch.delenv("MODERATION_CONFIG", raising=False)
    return ModelManager()


@pytest.fixture
def provider(model_manager):
    """Stand-in for the OpenAI provider, registered so no client is ever built."""
    provider = Mock()
    provider.chat.return_value = ModelResponse(content='{"safe": true, "reason": ""}', raw=None, meta={})
    model_manager._providers["openai"] = provider
    return provider


@pytest.fixture
def png_base64():
    """Raw base64 of a small PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color="green").save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


@pytest.fixture
def jpeg_base64():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color="red").save(buffer, format="JPEG")
    return base64.b64encode(buffer.getvalue()).decode("utf-8")
