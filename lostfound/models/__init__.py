"""Aggregate model imports for Alembic auto-detection."""

from lostfound.models.account import Account, AccountRole, account_permissions  # noqa: F401
from lostfound.models.permission import Permission  # noqa: F401
from lostfound.models.item import FoundItem, ItemStatus  # noqa: F401

__all__ = [
    "Account",
    "AccountRole",
    "FoundItem",
    "ItemStatus",
    "Permission",
    "account_permissions",
]
