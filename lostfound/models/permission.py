"""Permission — one named capability in the catalog.

The name is the stable key every role baseline and grant refers to
(e.g. ``delete_own_items``).  ``component`` and ``action`` are descriptive
tags used by the admin UI to group permissions.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lostfound.database import Base
from lostfound.models.account import account_permissions


class Permission(Base):
    __tablename__ = "permissions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text)
    component: Mapped[str | None] = mapped_column(String(50))
    action: Mapped[str | None] = mapped_column(String(50))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    accounts = relationship(
        "Account",
        secondary=account_permissions,
        back_populates="permissions",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Permission {self.name}>"
