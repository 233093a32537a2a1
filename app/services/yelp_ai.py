"""
Yelp AI business directory behind the query_yelp_ai tool.

The directory is simulated by prompting Gemini (YELP_AI_API_KEY) for
Yelp Fusion-shaped JSON. Locations outside coverage short-circuit to the
unavailable result; a missing key or any upstream failure falls back to
templated businesses.
"""

import logging
import traceback

from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamTransientError
from app.schemas.yelp import LocationDetails, QueryYelpAIArgs, YelpSearchResult
from app.services.fallback_data import DEFAULT_LOCATION, generate_fallback_businesses
from app.services.gemini_client import generate_directory_json
from app.services.location_resolver import resolve_location

logger = logging.getLogger(__name__)

MAX_RESULTS = 5

PRICE_DESCRIPTIONS = {
    "1": "budget-friendly",
    "2": "moderate",
    "3": "upscale",
    "4": "fine dining",
}


def build_yelp_ai_query(args: QueryYelpAIArgs) -> str:
    """Natural-language directory query, e.g. "Find sushi in Chicago with moderate pricing"."""
    query = f"Find {args.term or 'restaurants'} in {args.location or DEFAULT_LOCATION}"
    if args.price and args.price in PRICE_DESCRIPTIONS:
        query += f" with {PRICE_DESCRIPTIONS[args.price]} pricing"
    if args.categories:
        query += f" specializing in {args.categories}"
    return query


def _build_directory_prompt(query: str, location: str, details: LocationDetails) -> str:
    city_hint = location.split(",")[0]
    client_hint = f"\nClient: {settings.yelp_client_id}" if settings.yelp_client_id else ""
    return f"""As Yelp's AI API, provide detailed business information for: "{query}" in {location}{client_hint}

IMPORTANT: Yelp is primarily available in the United States and Canada. The requested location is: {details.city}, {details.country}.

Return realistic business data in this exact JSON format:
{{
  "businesses": [
    {{
      "id": "unique_yelp_id",
      "name": "Business Name",
      "image_url": "https://picsum.photos/400/300",
      "is_closed": false,
      "url": "https://www.yelp.com/biz/business-name",
      "review_count": 150,
      "categories": [{{"alias": "category", "title": "Category"}}],
      "rating": 4.5,
      "coordinates": {{"latitude": {details.coordinates.latitude}, "longitude": {details.coordinates.longitude}}},
      "transactions": ["delivery", "pickup"],
      "price": "$$",
      "location": {{
        "address1": "123 Main St",
        "city": "{city_hint}",
        "zip_code": "{details.zip_format}",
        "country": "{details.country_code}",
        "state": "{details.state_code}",
        "display_address": ["123 Main St", "{details.city}, {details.state_code} {details.zip_format}"]
      }},
      "phone": "{details.phone_prefix}5555551234",
      "display_phone": "{details.phone_format}",
      "distance": 1234.5
    }}
  ],
  "total": {MAX_RESULTS},
  "region": {{
    "center": {{"longitude": {details.coordinates.longitude}, "latitude": {details.coordinates.latitude}}}
  }}
}}

Provide {MAX_RESULTS} real-looking businesses with accurate {location} coordinates and addresses."""


def query_yelp_ai(raw_args: dict) -> YelpSearchResult:
    """
    Execute the query_yelp_ai tool.

    Args:
        raw_args: Tool-call arguments from the model (term, location, price, categories).

    Returns:
        A YelpSearchResult; unavailable=True when the location is outside coverage.
    """
    try:
        args = QueryYelpAIArgs.model_validate(raw_args or {})
    except ValidationError as e:
        logger.warning("Invalid query_yelp_ai arguments %s (%s), using fallback data", raw_args, e)
        term = raw_args.get("term")
        location = raw_args.get("location")
        return generate_fallback_businesses(
            term if isinstance(term, str) else None,
            location if isinstance(location, str) else None,
        )
    location = args.location or DEFAULT_LOCATION
    details = resolve_location(location)

    if not details.available:
        return generate_fallback_businesses(args.term, location)

    if not settings.yelp_ai_api_key:
        logger.warning("Yelp AI API Key missing, using fallback data generation.")
        return generate_fallback_businesses(args.term, location)

    query = build_yelp_ai_query(args)
    try:
        text = generate_directory_json(_build_directory_prompt(query, location, details))
        if not text:
            raise ValueError("empty directory response")
        result = YelpSearchResult.model_validate_json(text)
    except (ConfigurationError, UpstreamTransientError) as e:
        logger.warning("Yelp AI API temporarily unavailable (%s), using fallback data", e)
        return generate_fallback_businesses(args.term, location)
    except (ValidationError, ValueError) as e:
        logger.warning("Yelp AI API returned unusable data (%s), using fallback data", e)
        return generate_fallback_businesses(args.term, location)
    except Exception as e:
        logger.error("Yelp AI API Error: %s\n%s", e, traceback.format_exc())
        return generate_fallback_businesses(args.term, location)

    logger.info("Yelp AI API returned %s businesses for %r", len(result.businesses), query)
    return result
