"""Account endpoints: register, login, profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import authenticate_user, create_access_token, get_current_user, hash_password
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import AuthResponse, LoginRequest, ProfileResponse, RegisterRequest, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return it with an access token."""
    if not request.name or not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Name, email, and password are required")

    email = request.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="User already exists with this email")

    user = User(
        name=request.name.strip(),
        email=email,
        password_hash=hash_password(request.password),
        is_guest=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="User already exists with this email")
    db.refresh(user)
    logger.info("Registered user id=%s", user.id)

    return AuthResponse(user=UserRead.from_user(user), token=create_access_token(user))


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email + password for an access token."""
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    user = authenticate_user(db, request.email.strip().lower(), request.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return AuthResponse(user=UserRead.from_user(user), token=create_access_token(user))


@router.get("/profile", response_model=ProfileResponse)
def profile(current_user: User = Depends(get_current_user)):
    """The authenticated user's profile, including saved businesses."""
    return ProfileResponse(user=UserRead.from_user(current_user))
