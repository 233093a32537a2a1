"""Tests for POST /api/chat."""

import json
from unittest.mock import MagicMock, patch

from google.genai import errors as genai_errors
from google.genai import types

from app.core.config import settings


def _answer(payload):
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part(text=json.dumps(payload))])
            )
        ]
    )


OVERVIEW = {
    "message": "Chicago's River North is packed with pizza spots",
    "type": "overview",
    "locationSummary": {
        "areaName": "River North",
        "description": "Dense dining district",
        "dominantCategories": ["Pizza", "Steakhouses"],
        "vibe": "Lively",
        "averagePrice": "$$",
    },
}


def test_chat_returns_camel_case_without_empty_fields(client, gemini_configured):
    with patch("app.services.chat_orchestrator.generate_chat_content", return_value=_answer(OVERVIEW)):
        response = client.post("/api/chat", json={"history": [], "message": "Best pizza in Chicago"})

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "overview"
    assert data["locationSummary"]["areaName"] == "River North"
    assert data["locationSummary"]["dominantCategories"] == ["Pizza", "Steakhouses"]
    assert "businesses" not in data
    assert "comparisonPoints" not in data
    assert "reservationDetails" not in data


def test_chat_history_is_optional(client, gemini_configured):
    with patch("app.services.chat_orchestrator.generate_chat_content", return_value=_answer(OVERVIEW)) as mock_gen:
        response = client.post("/api/chat", json={"message": "Best pizza in Chicago"})

    assert response.status_code == 200
    contents = mock_gen.call_args.args[0]
    assert len(contents) == 1


def test_chat_rejects_empty_message(client, gemini_configured):
    response = client.post("/api/chat", json={"history": [], "message": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "message must be non-empty"}


def test_chat_without_gemini_key_is_configuration_error(client, monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    with patch("app.services.chat_orchestrator.generate_chat_content") as mock_gen:
        response = client.post("/api/chat", json={"history": [], "message": "Best pizza in Chicago"})

    mock_gen.assert_not_called()
    assert response.status_code == 500
    assert response.json() == {"error": "Yelp AI API Key configuration error", "code": "configuration_error"}


def test_chat_upstream_failure_is_unavailable(client, gemini_configured):
    with patch("app.services.chat_orchestrator.generate_chat_content", side_effect=RuntimeError("boom")):
        response = client.post("/api/chat", json={"history": [], "message": "Book a table at Alinea"})

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "upstream_unavailable"
    assert body["fallback"] is True
    assert "temporarily unavailable" in body["error"]


def test_chat_malformed_output_is_unavailable(client, gemini_configured):
    bad = types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text="Sure! Here you go")]))]
    )
    with patch("app.services.chat_orchestrator.generate_chat_content", return_value=bad):
        response = client.post("/api/chat", json={"history": [], "message": "Compare two sushi bars"})

    assert response.status_code == 500
    assert response.json()["code"] == "upstream_unavailable"


def test_chat_rate_limit_returns_degraded_idle(client, gemini_configured):
    mock_client = MagicMock()
    mock_client.models.generate_content.side_effect = genai_errors.ClientError(
        429,
        {"error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}},
    )

    with patch("app.services.gemini_client._get_client", return_value=mock_client):
        response = client.post("/api/chat", json={"history": [], "message": "Find restaurants in Mumbai"})

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "idle"
    assert "businesses" not in data
    assert "Yelp" in data["message"]
    # Direct generation hits the 429; the tool round is then skipped by the cooldown
    assert mock_client.models.generate_content.call_count == 1


def test_chat_repeated_message_is_served_from_cache(client, gemini_configured):
    with patch("app.services.chat_orchestrator.generate_chat_content", return_value=_answer(OVERVIEW)) as mock_gen:
        first = client.post("/api/chat", json={"history": [], "message": "Best pizza in Chicago"})
        second = client.post("/api/chat", json={"history": [], "message": "best pizza in chicago "})

    assert first.status_code == 200
    assert second.json() == first.json()
    assert mock_gen.call_count == 1


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
