from typing import Any, Optional

from pydantic import BaseModel, Field

from app.models.saved_business import SavedBusiness


class SaveBusinessRequest(BaseModel):
    """Request for POST /saved-businesses. `business` is the card as rendered in chat."""
    business: Optional[dict[str, Any]] = None


class SavedBusinessesResponse(BaseModel):
    saved_businesses: list[dict[str, Any]] = Field(serialization_alias="savedBusinesses")


class MessageResponse(BaseModel):
    message: str


def saved_business_to_dict(row: SavedBusiness) -> dict[str, Any]:
    """Business card plus the time it was saved."""
    data = dict(row.payload or {})
    data["savedAt"] = row.saved_at.isoformat() if row.saved_at else None
    return data
