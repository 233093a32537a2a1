"""Schemas for the Yelp AI business directory (tool results fed back to the model)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class LocationDetails(BaseModel):
    """
    Canonical city record derived from free-text location input.

    available=False means the region is outside Yelp's coverage; `message`
    then explains why and no businesses are returned for it.
    """
    country: str
    country_code: str
    city: str
    coordinates: Coordinates
    phone_prefix: str
    phone_format: str
    zip_format: str
    state_code: str
    available: bool = True
    message: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class YelpCategory(BaseModel):
    alias: str
    title: str


class YelpLocation(BaseModel):
    address1: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    display_address: list[str] = []


class YelpBusiness(BaseModel):
    """Yelp Fusion-shaped business record."""
    id: str
    name: str
    image_url: Optional[str] = None
    is_closed: bool = False
    url: Optional[str] = None
    review_count: int = 0
    categories: list[YelpCategory] = []
    rating: Optional[float] = None
    coordinates: Optional[Coordinates] = None
    transactions: list[str] = []
    price: Optional[str] = None
    location: Optional[YelpLocation] = None
    phone: Optional[str] = None
    display_phone: Optional[str] = None
    distance: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class YelpRegion(BaseModel):
    center: Coordinates


class YelpSearchResult(BaseModel):
    """
    Result of one query_yelp_ai call.

    unavailable=True (with `message`) marks a location outside coverage; it
    is distinct from a successful search that found nothing.
    """
    businesses: list[YelpBusiness] = []
    total: int = 0
    region: Optional[YelpRegion] = None
    message: Optional[str] = None
    unavailable: bool = False

    model_config = ConfigDict(extra="ignore")


class QueryYelpAIArgs(BaseModel):
    """Arguments of the query_yelp_ai tool, as sent by the model."""
    term: Optional[str] = None
    location: Optional[str] = None
    price: Optional[str] = None
    categories: Optional[str] = None

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


def tool_payload(result: YelpSearchResult) -> dict[str, Any]:
    """Serialize a search result for a function response (None fields dropped)."""
    return result.model_dump(exclude_none=True)
