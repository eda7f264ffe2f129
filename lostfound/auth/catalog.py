"""Permission catalog operations.

Create / update / delete are admin-only at the route layer.  Deleting a
permission pulls it out of every account's grant set in the same
transaction and bumps those accounts' versions, so a reconciliation
already in flight for one of them retries against the new catalog instead
of writing back a stale grant set.  Account objects already loaded in the
session are not touched; reload them with ``identity.load_account``.
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth.permissions import DEFAULT_PERMISSIONS, PermissionSeed
from lostfound.middleware.exceptions import DuplicatePermissionError, ResourceNotFoundError
from lostfound.models.account import Account, account_permissions
from lostfound.models.permission import Permission

logger = logging.getLogger("lostfound.catalog")


async def list_permissions(db: AsyncSession) -> list[Permission]:
    """Full catalog re-read, ordered by name."""
    result = await db.execute(select(Permission).order_by(Permission.name))
    return list(result.scalars().all())


async def find_by_names(db: AsyncSession, names: list[str] | set[str]) -> list[Permission]:
    if not names:
        return []
    result = await db.execute(
        select(Permission).where(Permission.name.in_(list(names))).order_by(Permission.name)
    )
    return list(result.scalars().all())


async def get_permission(db: AsyncSession, permission_id: str) -> Permission:
    result = await db.execute(select(Permission).where(Permission.id == permission_id))
    permission = result.scalar_one_or_none()
    if not permission:
        raise ResourceNotFoundError("Permission", permission_id)
    return permission


async def _name_taken(db: AsyncSession, name: str, exclude_id: str | None = None) -> bool:
    stmt = select(Permission.id).where(Permission.name == name)
    if exclude_id:
        stmt = stmt.where(Permission.id != exclude_id)
    return (await db.execute(stmt)).first() is not None


async def create_permission(
    db: AsyncSession,
    *,
    name: str,
    description: str | None = None,
    component: str | None = None,
    action: str | None = None,
) -> Permission:
    if await _name_taken(db, name):
        raise DuplicatePermissionError(name)

    permission = Permission(
        name=name,
        description=description,
        component=component,
        action=action,
    )
    db.add(permission)
    await db.flush()
    logger.info("Created permission %s", name)
    return permission


async def update_permission(
    db: AsyncSession,
    permission_id: str,
    **changes,
) -> Permission:
    permission = await get_permission(db, permission_id)

    new_name = changes.get("name")
    if new_name and new_name != permission.name and await _name_taken(db, new_name, permission_id):
        raise DuplicatePermissionError(new_name)

    for key, value in changes.items():
        if value is not None:
            setattr(permission, key, value)

    await db.flush()
    logger.info("Updated permission %s", permission.name)
    return permission


async def delete_permission(db: AsyncSession, permission_id: str) -> Permission:
    """Delete a permission and remove it from every grant set."""
    permission = await get_permission(db, permission_id)

    holders = select(account_permissions.c.account_id).where(
        account_permissions.c.permission_id == permission_id
    )
    await db.execute(
        update(Account)
        .where(Account.id.in_(holders))
        .values(version=Account.version + 1)
        .execution_options(synchronize_session=False)
    )
    pulled = await db.execute(
        delete(account_permissions).where(
            account_permissions.c.permission_id == permission_id
        )
    )
    await db.delete(permission)
    await db.flush()

    logger.info(
        "Deleted permission %s (removed from %d grant sets)",
        permission.name,
        pulled.rowcount or 0,
    )
    return permission


async def seed_permissions(
    db: AsyncSession,
    seeds: tuple[PermissionSeed, ...] = DEFAULT_PERMISSIONS,
    prune: bool = False,
) -> dict:
    """Upsert the seed catalog.

    Missing permissions are created and changed descriptions are updated.
    With ``prune=True`` permissions absent from the seed are deleted
    (through ``delete_permission`` so grant sets stay consistent).
    """
    existing = {p.name: p for p in await list_permissions(db)}
    summary = {"created": [], "updated": [], "removed": []}

    for seed in seeds:
        current = existing.get(seed.name)
        if current is None:
            db.add(Permission(
                name=seed.name,
                description=seed.description,
                component=seed.component,
                action=seed.action,
            ))
            summary["created"].append(seed.name)
        elif current.description != seed.description:
            current.description = seed.description
            summary["updated"].append(seed.name)

    await db.flush()

    if prune:
        wanted = {s.name for s in seeds}
        for name, permission in existing.items():
            if name not in wanted:
                await delete_permission(db, permission.id)
                summary["removed"].append(name)

    logger.info(
        "Seeded permissions: %d created, %d updated, %d removed",
        len(summary["created"]),
        len(summary["updated"]),
        len(summary["removed"]),
    )
    return summary
