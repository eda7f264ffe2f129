"""Account — an employee login and its permission grant set.

The grant set is a many-to-many link to the permission catalog
(``account_permissions``).  ``version`` is an optimistic concurrency
counter: every UPDATE of an account row is issued as
``... WHERE id = :id AND version = :expected`` and bumps it, so two
requests reconciling the same account cannot silently overwrite each
other's grant set.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Table,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lostfound.database import Base


class AccountRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    EMPLOYEE = "employee"


account_permissions = Table(
    "account_permissions",
    Base.metadata,
    Column(
        "account_id", String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True,
    ),
    Column(
        "permission_id", String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True,
    ),
)


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    employee_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[AccountRole] = mapped_column(
        SAEnum(AccountRole, values_callable=lambda e: [m.value for m in e]),
        default=AccountRole.EMPLOYEE,
        nullable=False,
    )

    # Touched whenever the grant set is replaced or appended to, so the
    # change always produces a versioned UPDATE of this row.
    grants_updated_at: Mapped[datetime | None] = mapped_column(DateTime)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    permissions = relationship(
        "Permission",
        secondary=account_permissions,
        back_populates="accounts",
        lazy="selectin",
        order_by="Permission.name",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def permission_names(self) -> list[str]:
        return [p.name for p in self.permissions]

    def set_grants(self, permissions: list) -> None:
        """Replace the grant set (deduplicated by permission id)."""
        unique = {p.id: p for p in permissions}
        self.permissions = sorted(unique.values(), key=lambda p: p.name)
        self.grants_updated_at = datetime.utcnow()

    def add_grants(self, permissions: list) -> None:
        """Append permissions not already granted; existing grants are kept."""
        held = {p.id for p in self.permissions}
        for perm in permissions:
            if perm.id not in held:
                self.permissions.append(perm)
                held.add(perm.id)
        self.grants_updated_at = datetime.utcnow()
