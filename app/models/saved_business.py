import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.base import Base


class SavedBusiness(Base):
    __tablename__ = "saved_businesses"
    __table_args__ = (
        UniqueConstraint("user_id", "business_id", name="uq_saved_businesses_user_business"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Business card id as shown in chat (e.g. "yelp_1700000000000_1")
    business_id = Column(String, nullable=False)
    # Full business card (camelCase keys) as saved by the client
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    saved_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    user = relationship("User", back_populates="saved_businesses")
