"""
Structured chat response ("intelligence") returned by POST /api/chat.

Field table (wire name -> meaning):

- message: conversational reply shown in the chat (always present)
- type: overview | recommendation | comparison | reservation | idle (always present)
- locationSummary: areaName, description, dominantCategories, vibe, averagePrice
- businesses: cards (id, name, category, price, rating, reviewCount, address, tags, ...)
- comparisonPoints: attribute, businessA, businessB, winnerId ("A" | "B" | null)
- reservationDetails: businessId, businessName, partySize, time, date, status

Optional fields are independent of `type`. Wire names are camelCase; Python
attributes are snake_case.
"""

import json
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.core.exceptions import UpstreamMalformedOutput


class IntelligenceType(str, Enum):
    overview = "overview"
    recommendation = "recommendation"
    comparison = "comparison"
    reservation = "reservation"
    idle = "idle"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LocationSummary(_CamelModel):
    area_name: str
    description: str
    dominant_categories: list[str] = []
    vibe: str
    average_price: str


class Business(_CamelModel):
    """One business card."""
    id: str
    name: str
    category: str
    price: Literal["$", "$$", "$$$", "$$$$"]
    rating: float = Field(ge=0, le=5)
    review_count: int = Field(ge=0)
    address: str
    hours: Optional[str] = None
    tags: list[str]
    why_this_place: Optional[str] = None
    highlight: Optional[str] = None
    image_url: Optional[str] = None


class ComparisonPoint(_CamelModel):
    attribute: str
    business_a: str
    business_b: str
    winner_id: Optional[Literal["A", "B"]] = None


class ReservationDetails(_CamelModel):
    business_id: str
    business_name: str
    party_size: int = Field(ge=1)
    time: str
    date: str
    status: Literal["pending", "confirmed"]


class IntelligenceData(_CamelModel):
    """Canonical structured response."""
    message: str
    type: IntelligenceType
    location_summary: Optional[LocationSummary] = None
    businesses: Optional[list[Business]] = None
    comparison_points: Optional[list[ComparisonPoint]] = None
    reservation_details: Optional[ReservationDetails] = None


class ChatTurn(BaseModel):
    """One prior turn of the conversation, as the client stores it."""
    role: str
    text: str


class ChatRequest(BaseModel):
    """Request for POST /api/chat."""
    history: list[ChatTurn] = []
    message: str


# Generation constraint sent to the model; mirrors the models above.
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "message": {"type": "STRING"},
        "type": {"type": "STRING", "enum": [t.value for t in IntelligenceType]},
        "locationSummary": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "areaName": {"type": "STRING"},
                "description": {"type": "STRING"},
                "dominantCategories": {"type": "ARRAY", "items": {"type": "STRING"}},
                "vibe": {"type": "STRING"},
                "averagePrice": {"type": "STRING"},
            },
            "required": ["areaName", "description", "vibe", "averagePrice"],
        },
        "businesses": {
            "type": "ARRAY",
            "nullable": True,
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "name": {"type": "STRING"},
                    "category": {"type": "STRING"},
                    "price": {"type": "STRING", "enum": ["$", "$$", "$$$", "$$$$"]},
                    "rating": {"type": "NUMBER"},
                    "reviewCount": {"type": "INTEGER"},
                    "address": {"type": "STRING"},
                    "hours": {"type": "STRING"},
                    "tags": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "whyThisPlace": {"type": "STRING"},
                    "highlight": {"type": "STRING"},
                    "imageUrl": {"type": "STRING"},
                },
                "required": ["id", "name", "category", "price", "rating", "reviewCount", "address", "tags"],
            },
        },
        "comparisonPoints": {
            "type": "ARRAY",
            "nullable": True,
            "items": {
                "type": "OBJECT",
                "properties": {
                    "attribute": {"type": "STRING"},
                    "businessA": {"type": "STRING"},
                    "businessB": {"type": "STRING"},
                    "winnerId": {"type": "STRING", "enum": ["A", "B"], "nullable": True},
                },
                "required": ["attribute", "businessA", "businessB"],
            },
        },
        "reservationDetails": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "businessId": {"type": "STRING"},
                "businessName": {"type": "STRING"},
                "partySize": {"type": "INTEGER"},
                "time": {"type": "STRING"},
                "date": {"type": "STRING"},
                "status": {"type": "STRING", "enum": ["pending", "confirmed"]},
            },
            "required": ["businessId", "businessName", "partySize", "time", "date", "status"],
        },
    },
    "required": ["message", "type"],
}


def parse_intelligence_response(text: str | None) -> IntelligenceData:
    """
    Parse model output into IntelligenceData.

    Output is never repaired: invalid JSON or a schema mismatch raises
    UpstreamMalformedOutput so the caller can demote to the next path.
    """
    if not text or not text.strip():
        raise UpstreamMalformedOutput("Empty model response")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise UpstreamMalformedOutput(f"Model response is not valid JSON: {e}") from e
    try:
        return IntelligenceData.model_validate(raw)
    except ValidationError as e:
        raise UpstreamMalformedOutput(
            f"Model response does not match the response schema: {e.error_count()} error(s)"
        ) from e
