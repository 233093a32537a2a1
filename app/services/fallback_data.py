"""
Templated business listings used when the Yelp AI directory is unconfigured
or fails. Three businesses around the resolved city center, offset so they
do not overlap on a map.
"""

import logging
import re
import time

from app.schemas.yelp import (
    Coordinates,
    LocationDetails,
    YelpBusiness,
    YelpCategory,
    YelpLocation,
    YelpRegion,
    YelpSearchResult,
)
from app.services.location_resolver import resolve_location

logger = logging.getLogger(__name__)

DEFAULT_TERM = "restaurant"
DEFAULT_LOCATION = "San Francisco"

# name template, slug, review_count, rating, price, transactions, address, (dlat, dlng), distance
_TEMPLATES = [
    ("Top Rated {term}", "top-rated-spot", 342, 4.8, "$$",
     ["delivery", "pickup", "restaurant_reservation"], "123 Main St", (0.0, 0.0), 1234.5),
    ("Local Favorite {term}", "local-favorite", 156, 4.5, "$",
     ["delivery", "pickup"], "456 Oak Ave", (0.01, -0.01), 2134.5),
    ("Premium {term} Experience", "premium-experience", 89, 4.6, "$$$",
     ["restaurant_reservation"], "789 Pine St", (-0.01, 0.01), 3234.5),
]


def _capitalize(term: str) -> str:
    return term[:1].upper() + term[1:]


def _unavailable_result(details: LocationDetails) -> YelpSearchResult:
    return YelpSearchResult(
        businesses=[],
        total=0,
        region=YelpRegion(center=details.coordinates),
        message=details.message,
        unavailable=True,
    )


def generate_fallback_businesses(term: str | None, location_text: str | None) -> YelpSearchResult:
    """
    Build a fallback search result for `term` in `location_text`.

    Unavailable locations yield an empty list flagged unavailable=True.
    Otherwise exactly three businesses with decreasing review counts; ids
    embed the generation time in milliseconds.
    """
    location_text = location_text or DEFAULT_LOCATION
    term = term or DEFAULT_TERM
    details = resolve_location(location_text)

    if not details.available:
        logger.info("Fallback data: %s, %s is outside coverage", details.city, details.country)
        return _unavailable_result(details)

    timestamp = int(time.time() * 1000)
    title = _capitalize(term)
    phone = re.sub(r"[^\d+]", "", details.phone_format)
    center = details.coordinates

    businesses = []
    for index, (name, slug, reviews, rating, price, transactions, address, (dlat, dlng), distance) in enumerate(
        _TEMPLATES, start=1
    ):
        businesses.append(
            YelpBusiness(
                id=f"yelp_{timestamp}_{index}",
                name=name.format(term=title),
                image_url=f"https://picsum.photos/400/300?random={index}",
                is_closed=False,
                url=f"https://www.yelp.com/biz/{slug}",
                review_count=reviews,
                categories=[YelpCategory(alias=term, title=title)],
                rating=rating,
                coordinates=Coordinates(
                    latitude=center.latitude + dlat,
                    longitude=center.longitude + dlng,
                ),
                transactions=transactions,
                price=price,
                location=YelpLocation(
                    address1=address,
                    city=details.city,
                    zip_code=details.zip_format,
                    country=details.country_code,
                    state=details.state_code,
                    display_address=[
                        address,
                        f"{details.city}, {details.state_code} {details.zip_format}",
                    ],
                ),
                phone=phone,
                display_phone=details.phone_format,
                distance=distance,
            )
        )

    return YelpSearchResult(
        businesses=businesses,
        total=len(businesses),
        region=YelpRegion(center=center),
    )
