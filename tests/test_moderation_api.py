"""
Tests for the moderation API endpoint.

Covers the HTTP contract of /moderate-review:
- status codes and verdict bodies for every policy branch
- CORS headers and pre-flight
- behaviour without a configured API key
"""

import pytest
from fastapi.testclient import TestClient

from moderation_gateway.api.main import create_app
from moderation_gateway.api.dependencies.gateway import get_model_manager
from moderation_gateway.models.providers.base import ModelError, ModelResponse, ModelStatusError, ModelTimeout
from moderation_gateway.pipeline.moderation.gateway import (
    BILLING_REASON,
    FLAGGED_REASON,
    NOT_CONFIGURED_REASON,
    RATE_LIMITED_REASON,
    TEXT_REQUIRED_REASON,
    UNVERIFIED_REASON,
)


def make_reply(content):
    return ModelResponse(content=content, raw=None, meta={"provider": "openai"})


@pytest.fixture
def client(model_manager):
    """Test client with the model manager dependency pointing at the test manager."""
    app = create_app()
    app.dependency_overrides[get_model_manager] = lambda: model_manager
    return TestClient(app)


@pytest.fixture
def review_request():
    return {"reviewText": "Lovely lamb mandi, generous portions.", "mode": "review"}


class TestModerationVerdicts:
    """Verdicts relayed from the model."""

    def test_safe_review(self, api_key, client, provider, review_request):
        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": True, "reason": ""}
        provider.chat.assert_called_once()

    def test_unsafe_review_is_relayed(self, api_key, client, provider, review_request):
        provider.chat.return_value = make_reply('{"safe": false, "reason": "Review contains inappropriate language."}')

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": False, "reason": "Review contains inappropriate language."}

    @pytest.mark.parametrize("content", ['{"safe": false}', '{"safe": false, "reason": ""}', '{"safe": false, "reason": "  "}'])
    def test_unsafe_without_reason_gets_generic_reason(self, api_key, client, provider, review_request, content):
        provider.chat.return_value = make_reply(content)

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": False, "reason": FLAGGED_REASON}

    def test_fenced_reply_is_unwrapped(self, api_key, client, provider, review_request):
        provider.chat.return_value = make_reply('```json\n{"safe": true, "reason": ""}\n```')

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": True, "reason": ""}

    def test_mode_defaults_to_review(self, api_key, client, provider):
        response = client.post("/moderate-review", json={"reviewText": "Nice staff"})

        assert response.status_code == 200
        request = provider.chat.call_args[0][0]
        assert "Halal restaurant review" in request.messages[0]["content"]

    def test_legacy_field_names(self, api_key, client, provider, png_base64):
        response = client.post("/moderate-review", json={"imageBase64": png_base64, "moderationType": "avatar"})

        assert response.status_code == 200
        request = provider.chat.call_args[0][0]
        assert "avatar" in request.messages[0]["content"]
        assert request.messages[1]["content"][1]["type"] == "image_url"


class TestInputValidation:

    @pytest.mark.parametrize("mode", ["image_only", "avatar"])
    @pytest.mark.parametrize("extra", [{}, {"imageData": ""}, {"imageData": None}, {"reviewText": "hello"}])
    def test_image_modes_without_image_are_safe(self, api_key, client, provider, mode, extra):
        response = client.post("/moderate-review", json={"mode": mode, **extra})

        assert response.status_code == 200
        assert response.json() == {"safe": True, "reason": ""}
        provider.chat.assert_not_called()

    @pytest.mark.parametrize("body", [
        {"mode": "review"},
        {"mode": "review", "reviewText": ""},
        {"mode": "review", "reviewText": "   \n\t "},
        {"reviewText": None},
        {},
    ])
    def test_review_without_text_is_rejected(self, api_key, client, provider, body):
        response = client.post("/moderate-review", json=body)

        assert response.status_code == 400
        assert response.json() == {"safe": False, "reason": TEXT_REQUIRED_REASON}
        provider.chat.assert_not_called()

    def test_unknown_mode_is_treated_as_review(self, api_key, client, provider):
        response = client.post("/moderate-review", json={"mode": "banner"})

        assert response.status_code == 400
        assert response.json()["safe"] is False

    def test_malformed_body_is_blocked(self, api_key, client, provider):
        response = client.post(
            "/moderate-review",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"safe": False, "reason": UNVERIFIED_REASON}
        provider.chat.assert_not_called()

    def test_wrong_field_type_is_blocked(self, api_key, client, provider):
        response = client.post("/moderate-review", json={"reviewText": ["a", "list"]})

        assert response.status_code == 200
        assert response.json() == {"safe": False, "reason": UNVERIFIED_REASON}


class TestUpstreamFailures:
    """Mapping of upstream failures to verdicts."""

    def test_rate_limited(self, api_key, client, provider, review_request):
        provider.chat.side_effect = ModelStatusError(429, '{"error": "rate limit"}')

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 429
        assert response.json() == {"safe": False, "reason": RATE_LIMITED_REASON}

    def test_payment_required(self, api_key, client, provider, review_request):
        provider.chat.side_effect = ModelStatusError(402, '{"error": "billing"}')

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 402
        assert response.json() == {"safe": False, "reason": BILLING_REASON}

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 500, 502, 503])
    def test_other_statuses_allow(self, api_key, client, provider, review_request, status_code):
        provider.chat.side_effect = ModelStatusError(status_code, "upstream broke")

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": True, "reason": ""}

    @pytest.mark.parametrize("content", ["", "   "])
    def test_empty_content_allows(self, api_key, client, provider, review_request, content):
        provider.chat.return_value = make_reply(content)

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": True, "reason": ""}

    @pytest.mark.parametrize("content", [
        "I think it is fine",
        '{"safe": "maybe"}',
        "[true]",
        '{"reason": "x"}',
        '{"safe": "yes", "reason": ""}',
        '{"safe": 1, "reason": ""}',
        '{"safe": "on"}',
    ])
    def test_unparsable_content_blocks(self, api_key, client, provider, review_request, content):
        provider.chat.return_value = make_reply(content)

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": False, "reason": UNVERIFIED_REASON}

    @pytest.mark.parametrize("error", [ModelError("connection reset"), ModelTimeout("timed out"), RuntimeError("boom")])
    def test_unexpected_errors_block(self, api_key, client, provider, review_request, error):
        provider.chat.side_effect = error

        response = client.post("/moderate-review", json=review_request)

        assert response.status_code == 200
        assert response.json() == {"safe": False, "reason": UNVERIFIED_REASON}
        assert "boom" not in response.text


class TestMissingCredential:

    @pytest.mark.parametrize("body", [
        {"reviewText": "Great food", "mode": "review"},
        {"mode": "image_only"},
        {"mode": "avatar", "imageData": "data:image/png;base64,AAAA"},
        {"mode": "review"},
    ])
    def test_every_request_fails_before_upstream(self, no_api_key, client, provider, body):
        response = client.post("/moderate-review", json=body)

        assert response.status_code == 500
        assert response.json() == {"safe": False, "reason": NOT_CONFIGURED_REASON}
        assert provider.chat.call_count == 0

    def test_malformed_body_without_credential(self, no_api_key, client, provider):
        response = client.post("/moderate-review", content=b"garbage")

        assert response.status_code == 500
        assert provider.chat.call_count == 0

    def test_blank_key_counts_as_missing(self, monkeypatch, client, provider):
        monkeypatch.delenv("MODERATION_CONFIG", raising=False)
        monkeypatch.setenv("OPENAI_API_KEY", "  ")

        response = client.post("/moderate-review", json={"reviewText": "Great food"})

        assert response.status_code == 500
        assert provider.chat.call_count == 0


class TestHttpContract:

    def test_cors_headers_on_every_response(self, api_key, client, provider):
        ok = client.post("/moderate-review", json={"reviewText": "Great"})
        bad = client.post("/moderate-review", json={"mode": "review"})

        for response in (ok, bad):
            assert response.headers["access-control-allow-origin"] == "*"
            assert "apikey" in response.headers["access-control-allow-headers"]
            assert response.headers["content-type"] == "application/json"

    def test_cors_headers_without_credential(self, no_api_key, client, provider):
        response = client.post("/moderate-review", json={"reviewText": "Great"})

        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight(self, client):
        response = client.options("/moderate-review")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "authorization, x-client-info, apikey, content-type"

    def test_identical_requests_give_identical_responses(self, api_key, client, provider, review_request):
        provider.chat.return_value = make_reply('{"safe": false, "reason": "Image shows alcohol."}')

        first = client.post("/moderate-review", json=review_request)
        second = client.post("/moderate-review", json=review_request)

        assert first.status_code == second.status_code
        assert first.content == second.content


class TestHealth:

    def test_health_with_credential(self, api_key, client):
        response = client.get("/health/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["moderation_credentials"].endswith("Configured")

    def test_health_without_credential(self, no_api_key, client):
        data = client.get("/health/").json()

        assert data["status"] == "degraded"

    def test_readiness(self, api_key, client):
        assert client.get("/health/ready").json()["ready"] is True

    def test_not_ready_without_credential(self, no_api_key, client):
        assert client.get("/health/ready").json()["ready"] is False

    def test_root(self, client):
        data = client.get("/").json()
        assert data["endpoints"]["moderation"] == "/moderate-review"
