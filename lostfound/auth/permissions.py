"""Permission names, catalog seed, and role baselines.

Design:
  - The permission catalog lives in the database (``permissions`` table) so
    admins can add, describe and remove permissions at runtime.
  - ``DEFAULT_PERMISSIONS`` is the seed every deployment must carry before
    first use (``python -m lostfound.cli seed-permissions``).
  - ``ROLE_BASELINES`` is the static Role Policy: the permission names each
    non-admin role is entitled to by default.  Admins are not listed here;
    reconciliation grants them the entire catalog instead.
  - Grants arriving from outside the store (request bodies, bootstrap
    scripts, token claims) are ``UnresolvedGrant`` names until they are
    resolved against the catalog once, after which only ``Permission``
    rows flow into authorization decisions.

Permission naming: ``<action>_<scope>``
  Item actions come in two tiers: ``<action>_all_items`` (any item) and
  ``<action>_own_items`` (items the caller found).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from lostfound.models.account import AccountRole
from lostfound.models.permission import Permission


# ── Permission names ────────────────────────────────────────

VIEW_DASHBOARD = "view_dashboard"
VIEW_ALL_ITEMS = "view_all_items"
VIEW_OWN_ITEMS = "view_own_items"
CREATE_ITEMS = "create_items"
EDIT_ALL_ITEMS = "edit_all_items"
EDIT_OWN_ITEMS = "edit_own_items"
DELETE_ALL_ITEMS = "delete_all_items"
DELETE_OWN_ITEMS = "delete_own_items"
MANAGE_USERS = "manage_users"
GENERATE_REPORTS = "generate_reports"
DELIVER_ITEMS = "deliver_items"
VIEW_DELIVERED_ITEMS = "view_delivered_items"
REVERT_DELIVERED_STATUS = "revert_delivered_status"


@dataclass(frozen=True)
class PermissionSeed:
    name: str
    description: str
    component: str
    action: str


# ── Catalog seed ────────────────────────────────────────────

DEFAULT_PERMISSIONS: tuple[PermissionSeed, ...] = (
    PermissionSeed(VIEW_DASHBOARD, "View the dashboard", "dashboard", "view"),
    PermissionSeed(VIEW_ALL_ITEMS, "View all lost and found items", "items", "view_all"),
    PermissionSeed(VIEW_OWN_ITEMS, "View items you created", "items", "view_own"),
    PermissionSeed(CREATE_ITEMS, "Create new lost and found items", "items", "create"),
    PermissionSeed(EDIT_ALL_ITEMS, "Edit any lost and found item", "items", "edit_all"),
    PermissionSeed(EDIT_OWN_ITEMS, "Edit items you created", "items", "edit_own"),
    PermissionSeed(DELETE_ALL_ITEMS, "Delete any lost and found item", "items", "delete_all"),
    PermissionSeed(DELETE_OWN_ITEMS, "Delete items you created", "items", "delete_own"),
    PermissionSeed(MANAGE_USERS, "Manage system users", "users", "manage"),
    PermissionSeed(GENERATE_REPORTS, "Generate system reports", "reports", "generate"),
    PermissionSeed(DELIVER_ITEMS, "Mark items as delivered", "items", "deliver"),
    PermissionSeed(VIEW_DELIVERED_ITEMS, "View delivered items", "items", "view_delivered"),
    PermissionSeed(
        REVERT_DELIVERED_STATUS, "Revert delivered status of items", "items", "revert_delivered"
    ),
)

ALL_PERMISSION_NAMES: frozenset[str] = frozenset(p.name for p in DEFAULT_PERMISSIONS)


# ── Role Policy ─────────────────────────────────────────────

ROLE_BASELINES: dict[AccountRole, frozenset[str]] = {
    AccountRole.SUPERVISOR: frozenset({
        VIEW_DASHBOARD,
        VIEW_ALL_ITEMS, VIEW_OWN_ITEMS,
        CREATE_ITEMS,
        EDIT_ALL_ITEMS, EDIT_OWN_ITEMS,
        DELETE_ALL_ITEMS, DELETE_OWN_ITEMS,
        DELIVER_ITEMS,
        VIEW_DELIVERED_ITEMS,
    }),

    AccountRole.EMPLOYEE: frozenset({
        VIEW_DASHBOARD,
        VIEW_OWN_ITEMS,
        CREATE_ITEMS,
        EDIT_OWN_ITEMS,
        DELETE_OWN_ITEMS,
        DELIVER_ITEMS,
        VIEW_DELIVERED_ITEMS,
    }),
}


def baseline_for(role: AccountRole, catalog_names: set[str] | frozenset[str]) -> frozenset[str]:
    """Return the names a role is entitled to, restricted to the catalog.

    Admins are entitled to whatever the catalog currently holds.
    """
    if role == AccountRole.ADMIN:
        return frozenset(catalog_names)
    return ROLE_BASELINES.get(role, frozenset()) & frozenset(catalog_names)


# ── Grant references ────────────────────────────────────────

@dataclass(frozen=True)
class UnresolvedGrant:
    """A grant known only by permission name."""
    name: str


@dataclass(frozen=True)
class ResolvedGrant:
    """A grant bound to a catalog row."""
    permission: Permission

    @property
    def name(self) -> str:
        return self.permission.name


GrantRef = Union[UnresolvedGrant, ResolvedGrant]


def resolve_grants(
    grants: list[GrantRef],
    catalog: list[Permission],
) -> tuple[list[Permission], list[str]]:
    """Bind grant references to catalog rows.

    Returns ``(resolved, unknown_names)``.  Duplicates collapse to one
    permission; resolved grants whose row is no longer in the catalog are
    reported as unknown.
    """
    by_name = {p.name: p for p in catalog}
    resolved: dict[str, Permission] = {}
    unknown: list[str] = []
    for grant in grants:
        perm = by_name.get(grant.name)
        if perm is None:
            unknown.append(grant.name)
        else:
            resolved[perm.name] = perm
    return list(resolved.values()), unknown


def as_grants(names: list[str]) -> list[UnresolvedGrant]:
    return [UnresolvedGrant(name) for name in names]
