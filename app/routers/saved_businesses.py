"""Saved businesses for the authenticated user."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.saved_business import SavedBusiness
from app.models.user import User
from app.schemas.saved_business import (
    MessageResponse,
    SaveBusinessRequest,
    SavedBusinessesResponse,
    saved_business_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/saved-businesses", tags=["saved-businesses"])


@router.get("", response_model=SavedBusinessesResponse)
def list_saved_businesses(current_user: User = Depends(get_current_user)):
    """Saved business cards in the order they were saved."""
    return SavedBusinessesResponse(
        saved_businesses=[saved_business_to_dict(row) for row in current_user.saved_businesses]
    )


@router.post("", response_model=MessageResponse)
def save_business(
    request: SaveBusinessRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save a business card; saving the same business id twice is rejected."""
    business = request.business
    if not business or not business.get("id"):
        raise HTTPException(status_code=400, detail="Business data is required")

    business_id = str(business["id"])
    existing = (
        db.query(SavedBusiness)
        .filter(SavedBusiness.user_id == current_user.id, SavedBusiness.business_id == business_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="Business already saved or user not found")

    db.add(SavedBusiness(user_id=current_user.id, business_id=business_id, payload=business))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Business already saved or user not found")

    logger.info("Saved business %s for user id=%s", business_id, current_user.id)
    return MessageResponse(message="Business saved successfully")


@router.delete("/{business_id}", response_model=MessageResponse)
def remove_saved_business(
    business_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a saved business by its card id."""
    row = (
        db.query(SavedBusiness)
        .filter(SavedBusiness.user_id == current_user.id, SavedBusiness.business_id == business_id)
        .first()
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Business not found in saved list")

    db.delete(row)
    db.commit()
    logger.info("Removed saved business %s for user id=%s", business_id, current_user.id)
    return MessageResponse(message="Business removed successfully")
