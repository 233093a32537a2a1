"""
Free-text location -> LocationDetails.

Detectors are evaluated top to bottom and the first match wins, so the
"unavailable region" detector sits above the US cities and the default
record is an explicit final entry that always matches.
"""

import re
from typing import Callable

from app.schemas.yelp import Coordinates, LocationDetails

INDIA_UNAVAILABLE_MESSAGE = (
    "Yelp services are primarily available in the United States, Canada, and select "
    "international markets. Unfortunately, comprehensive business data for India is not "
    "yet available through Yelp AI API."
)

_INDIA_CITIES = [
    ("mumbai", "Mumbai"),
    ("delhi", "Delhi"),
    ("bangalore", "Bangalore"),
    ("hyderabad", "Hyderabad"),
    ("chennai", "Chennai"),
    ("kolkata", "Kolkata"),
    ("pune", "Pune"),
]

_POSTAL_CODE_6 = re.compile(r"^\d{6}$")


def _contains_any(*keywords: str) -> Callable[[str, str], bool]:
    def _match(lowered: str, raw: str) -> bool:
        return any(k in lowered for k in keywords)
    return _match


def _is_india(lowered: str, raw: str) -> bool:
    if any(k in lowered for k in ("india", *(alias for alias, _ in _INDIA_CITIES))):
        return True
    return bool(_POSTAL_CODE_6.match(raw))


def _india(lowered: str, raw: str) -> LocationDetails:
    city = next((name for alias, name in _INDIA_CITIES if alias in lowered), "Mumbai")
    return LocationDetails(
        country="India",
        country_code="IN",
        city=city,
        coordinates=Coordinates(latitude=19.0760, longitude=72.8777),
        phone_prefix="+91",
        phone_format="+91 22 1234 5678",
        zip_format="400001",
        state_code="MH",
        available=False,
        message=INDIA_UNAVAILABLE_MESSAGE,
    )


def _us_city(city: str, latitude: float, longitude: float, area_code: str, zip_code: str, state: str):
    def _build(lowered: str, raw: str) -> LocationDetails:
        return LocationDetails(
            country="United States",
            country_code="US",
            city=city,
            coordinates=Coordinates(latitude=latitude, longitude=longitude),
            phone_prefix="+1",
            phone_format=f"({area_code}) 555-1234",
            zip_format=zip_code,
            state_code=state,
            available=True,
        )
    return _build


def _default(lowered: str, raw: str) -> LocationDetails:
    return LocationDetails(
        country="United States",
        country_code="US",
        city=raw.split(",")[0].strip() or "San Francisco",
        coordinates=Coordinates(latitude=37.7749, longitude=-122.4194),
        phone_prefix="+1",
        phone_format="(415) 555-1234",
        zip_format="94102",
        state_code="CA",
        available=True,
    )


# (predicate, builder) pairs; order matters. Anything unmatched gets _default.
_DETECTORS = [
    (_is_india, _india),
    (_contains_any("san francisco", "sf"), _us_city("San Francisco", 37.7749, -122.4194, "415", "94102", "CA")),
    (_contains_any("new york", "nyc"), _us_city("New York", 40.7128, -74.0060, "212", "10001", "NY")),
    (_contains_any("los angeles", "la"), _us_city("Los Angeles", 34.0522, -118.2437, "213", "90001", "CA")),
    (_contains_any("chicago"), _us_city("Chicago", 41.8781, -87.6298, "312", "60601", "IL")),
]


def resolve_location(location_text: str) -> LocationDetails:
    """Map a free-text location to a city record. Never fails."""
    lowered = location_text.lower()
    for predicate, build in _DETECTORS:
        if predicate(lowered, location_text):
            return build(lowered, location_text)
    return _default(lowered, location_text)
