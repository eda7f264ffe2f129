"""FoundItem — an item found on a flight or in an airport location.

Lifecycle:  onHand → inProcess → delivered
A delivered item can be reverted: the delivered record is archived and a
fresh on-hand item is created in its place.

``found_by`` is the owning account for "own" vs "all" permission checks.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lostfound.database import Base


class ItemStatus(str, enum.Enum):
    ON_HAND = "onHand"
    IN_PROCESS = "inProcess"
    DELIVERED = "delivered"


class FoundItem(Base):
    __tablename__ = "found_items"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    flight_number: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    date_found: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    image_urls: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(
        String(20), default=ItemStatus.ON_HAND.value, nullable=False, index=True
    )
    archived: Mapped[bool] = mapped_column(Boolean, default=False)

    # Ownership
    found_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL"), index=True
    )

    # ── Delivery ─────────────────────────────────────────────
    delivered_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL")
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime)
    customer_name: Mapped[str | None] = mapped_column(String(100))
    customer_last_name: Mapped[str | None] = mapped_column(String(100))
    customer_signature: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    finder = relationship("Account", foreign_keys=[found_by], lazy="selectin")
    deliverer = relationship("Account", foreign_keys=[delivered_by], lazy="selectin")
