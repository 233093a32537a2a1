"""Tests for Gemini client: error classification, 429 cooldown, key configuration."""

from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock, patch

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamTransientError
from app.services import gemini_client


def _quota_error(retry_delay=None):
    error = {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "quota exceeded"}
    if retry_delay:
        error["details"] = [
            {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": retry_delay}
        ]
    return genai_errors.ClientError(429, {"error": error})


def _overloaded_error():
    return genai_errors.ServerError(
        503, {"error": {"code": 503, "status": "UNAVAILABLE", "message": "The model is overloaded."}}
    )


def _text_response(text):
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))]
    )


def _contents():
    return [types.Content(role="user", parts=[types.Part(text="hi")])]


@pytest.fixture
def chat_key(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", "test-gemini-key")


def test_429_sets_cooldown_and_raises_transient(chat_key):
    """
    When the SDK raises ClientError 429 RESOURCE_EXHAUSTED,
    generate_chat_content starts the chat cooldown and raises UpstreamTransientError.
    """
    def raise_429(*args, **kwargs):
        raise _quota_error()

    with patch.object(gemini_client, "_get_client") as mock_get_client:
        mock_client = MagicMock()
        mock_client.models.generate_content = raise_429
        mock_get_client.return_value = mock_client

        with pytest.raises(UpstreamTransientError):
            gemini_client.generate_chat_content(_contents())

    until = gemini_client._quota_cooldown_until[gemini_client.CHAT]
    assert until is not None
    assert until > datetime.now(timezone.utc)
    # The directory key is unaffected
    assert gemini_client._quota_cooldown_until[gemini_client.DIRECTORY] is None


def test_429_uses_retry_info_delay(chat_key):
    """RetryInfo retryDelay overrides the configured default cooldown."""
    with patch.object(gemini_client, "_get_client") as mock_get_client:
        mock_get_client.return_value.models.generate_content.side_effect = _quota_error("2s")

        with pytest.raises(UpstreamTransientError):
            gemini_client.generate_chat_content(_contents())

    until = gemini_client._quota_cooldown_until[gemini_client.CHAT]
    assert until <= datetime.now(timezone.utc) + timedelta(seconds=3)


def test_cooldown_skips_call_and_raises_transient(chat_key):
    """
    When in cooldown, generate_chat_content does not call the SDK
    and fails fast with UpstreamTransientError.
    """
    gemini_client._quota_cooldown_until[gemini_client.CHAT] = datetime.now(timezone.utc) + timedelta(seconds=60)

    with patch.object(gemini_client, "_get_client") as mock_get_client:
        with pytest.raises(UpstreamTransientError):
            gemini_client.generate_chat_content(_contents())

    mock_get_client.assert_not_called()


def test_expired_cooldown_is_cleared(chat_key):
    gemini_client._quota_cooldown_until[gemini_client.CHAT] = datetime.now(timezone.utc) - timedelta(seconds=1)

    with patch.object(gemini_client, "_get_client") as mock_get_client:
        mock_get_client.return_value.models.generate_content.return_value = _text_response('{"ok": true}')
        response = gemini_client.generate_chat_content(_contents())

    assert response.text == '{"ok": true}'
    assert gemini_client._quota_cooldown_until[gemini_client.CHAT] is None


def test_503_overloaded_raises_transient_without_cooldown(chat_key):
    with patch.object(gemini_client, "_get_client") as mock_get_client:
        mock_get_client.return_value.models.generate_content.side_effect = _overloaded_error()

        with pytest.raises(UpstreamTransientError):
            gemini_client.generate_chat_content(_contents())

    assert gemini_client._quota_cooldown_until[gemini_client.CHAT] is None


def test_other_client_errors_propagate(chat_key):
    bad_request = genai_errors.ClientError(
        400, {"error": {"code": 400, "status": "INVALID_ARGUMENT", "message": "bad schema"}}
    )
    with patch.object(gemini_client, "_get_client") as mock_get_client:
        mock_get_client.return_value.models.generate_content.side_effect = bad_request

        with pytest.raises(genai_errors.ClientError):
            gemini_client.generate_chat_content(_contents())


def test_missing_chat_key_raises_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)

    with pytest.raises(ConfigurationError):
        gemini_client.generate_chat_content(_contents())


def test_schema_call_requests_json(chat_key):
    """With response_schema the call is JSON-constrained; with tools they are passed through."""
    schema = {"type": "OBJECT", "properties": {"message": {"type": "STRING"}}}

    with patch.object(gemini_client, "_get_client") as mock_get_client:
        generate = mock_get_client.return_value.models.generate_content
        generate.return_value = _text_response('{"message": "hi"}')

        gemini_client.generate_chat_content(_contents(), system_instruction="sys", response_schema=schema)

    config = generate.call_args.kwargs["config"]
    assert config.response_mime_type == "application/json"
    assert config.system_instruction == "sys"
    assert generate.call_args.kwargs["model"] == settings.gemini_model


def test_directory_success_returns_text(monkeypatch):
    """When the SDK returns text, generate_directory_json returns it."""
    monkeypatch.setattr(settings, "yelp_ai_api_key", "test-directory-key")

    with patch.object(gemini_client, "_get_client_directory") as mock_get_client:
        mock_get_client.return_value.models.generate_content.return_value = _text_response('{"businesses": []}')

        result = gemini_client.generate_directory_json("prompt")

    assert result == '{"businesses": []}'


def test_missing_directory_key_raises_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "yelp_ai_api_key", None)

    with pytest.raises(ConfigurationError):
        gemini_client.generate_directory_json("prompt")
