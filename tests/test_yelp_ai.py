"""Tests for the Yelp AI business directory behind the query_yelp_ai tool."""

import json
from unittest.mock import patch

import pytest

from app.core.config import settings
from app.core.exceptions import UpstreamTransientError
from app.schemas.yelp import QueryYelpAIArgs
from app.services.yelp_ai import build_yelp_ai_query, query_yelp_ai


def _directory_json():
    return json.dumps(
        {
            "businesses": [
                {
                    "id": "lou-malnatis-chicago",
                    "name": "Lou Malnati's",
                    "review_count": 5120,
                    "rating": 4.5,
                    "price": "$$",
                    "categories": [{"alias": "pizza", "title": "Pizza"}],
                    "coordinates": {"latitude": 41.89, "longitude": -87.63},
                    "location": {"address1": "439 N Wells St", "city": "Chicago", "state": "IL"},
                    "unknown_field": "ignored",
                }
            ],
            "total": 1,
            "region": {"center": {"latitude": 41.8781, "longitude": -87.6298}},
        }
    )


@pytest.fixture
def directory_key(monkeypatch):
    monkeypatch.setattr(settings, "yelp_ai_api_key", "test-directory-key")


def test_build_query_defaults():
    assert build_yelp_ai_query(QueryYelpAIArgs()) == "Find restaurants in San Francisco"


def test_build_query_with_price_and_categories():
    args = QueryYelpAIArgs(term="sushi", location="Chicago", price="2", categories="japanese,sushi")
    assert build_yelp_ai_query(args) == (
        "Find sushi in Chicago with moderate pricing specializing in japanese,sushi"
    )


def test_numeric_price_argument_is_accepted():
    args = QueryYelpAIArgs.model_validate({"term": "steak", "location": "NYC", "price": 4})
    assert build_yelp_ai_query(args) == "Find steak in NYC with fine dining pricing"


def test_unavailable_location_skips_upstream(directory_key):
    with patch("app.services.yelp_ai.generate_directory_json") as mock_gen:
        result = query_yelp_ai({"term": "biryani", "location": "Hyderabad"})

    mock_gen.assert_not_called()
    assert result.unavailable is True
    assert result.businesses == []
    assert "India" in result.message


def test_missing_key_uses_fallback(directory_unconfigured):
    with patch("app.services.yelp_ai.generate_directory_json") as mock_gen:
        result = query_yelp_ai({"term": "pizza", "location": "Chicago"})

    mock_gen.assert_not_called()
    assert len(result.businesses) == 3
    assert result.businesses[0].name == "Top Rated Pizza"


def test_configured_directory_returns_validated_upstream_data(directory_key):
    with patch("app.services.yelp_ai.generate_directory_json", return_value=_directory_json()) as mock_gen:
        result = query_yelp_ai({"term": "pizza", "location": "Chicago"})

    prompt = mock_gen.call_args.args[0]
    assert '"Find pizza in Chicago"' in prompt
    assert "Chicago, United States" in prompt
    assert result.unavailable is False
    assert result.total == 1
    assert result.businesses[0].name == "Lou Malnati's"
    assert result.businesses[0].location.address1 == "439 N Wells St"


@pytest.mark.parametrize(
    "failure",
    [
        UpstreamTransientError("429"),
        RuntimeError("network down"),
    ],
)
def test_upstream_failure_uses_fallback(directory_key, failure):
    with patch("app.services.yelp_ai.generate_directory_json", side_effect=failure):
        result = query_yelp_ai({"term": "pizza", "location": "Chicago"})

    assert [b.review_count for b in result.businesses] == [342, 156, 89]


@pytest.mark.parametrize("text", [None, "not json", '{"businesses": [{"name": "missing id"}]}'])
def test_unusable_upstream_output_uses_fallback(directory_key, text):
    with patch("app.services.yelp_ai.generate_directory_json", return_value=text):
        result = query_yelp_ai({"term": "pizza", "location": "Chicago"})

    assert len(result.businesses) == 3


def test_wrongly_typed_arguments_use_fallback(directory_key):
    with patch("app.services.yelp_ai.generate_directory_json") as mock_gen:
        result = query_yelp_ai({"term": "pizza", "location": "Chicago", "categories": ["pizza", "italian"]})

    mock_gen.assert_not_called()
    assert len(result.businesses) == 3
    assert result.businesses[0].name == "Top Rated Pizza"
    assert result.businesses[0].location.city == "Chicago"
