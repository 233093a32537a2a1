import uuid
from sqlalchemy import Boolean, Column, String, DateTime, Uuid, func
from sqlalchemy.orm import relationship

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    # scrypt$<salt b64>$<hash b64>; never returned by the API
    password_hash = Column(String, nullable=False)
    is_guest = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    saved_businesses = relationship(
        "SavedBusiness",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="SavedBusiness.saved_at",
    )
