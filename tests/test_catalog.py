"""Permission catalog: creation, renaming, deletion cascade and seeding."""

import pytest
from sqlalchemy import func, select

from lostfound.auth import catalog
from lostfound.auth.identity import load_account
from lostfound.auth.permissions import ALL_PERMISSION_NAMES, DEFAULT_PERMISSIONS, PermissionSeed
from lostfound.middleware.exceptions import DuplicatePermissionError, ResourceNotFoundError
from lostfound.models import Permission, account_permissions


async def _by_name(db, name: str) -> Permission:
    result = await db.execute(select(Permission).where(Permission.name == name))
    return result.scalar_one()


@pytest.mark.asyncio
class TestCatalog:

    async def test_seeded_catalog(self, db_session):
        names = [p.name for p in await catalog.list_permissions(db_session)]
        assert set(names) == ALL_PERMISSION_NAMES
        assert len(names) == 13
        assert names == sorted(names)

    async def test_create(self, db_session):
        permission = await catalog.create_permission(
            db_session, name="export_reports", description="Export reports",
            component="reports", action="export",
        )
        assert permission.id
        assert len(await catalog.list_permissions(db_session)) == 14

    async def test_duplicate_name_rejected(self, db_session):
        with pytest.raises(DuplicatePermissionError) as exc_info:
            await catalog.create_permission(db_session, name="manage_users")

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "DUPLICATE_PERMISSION"
        assert len(await catalog.list_permissions(db_session)) == 13

    async def test_rename_onto_existing_name_rejected(self, db_session):
        permission = await _by_name(db_session, "generate_reports")
        with pytest.raises(DuplicatePermissionError):
            await catalog.update_permission(db_session, permission.id, name="manage_users")

    async def test_update_description(self, db_session):
        permission = await _by_name(db_session, "generate_reports")
        updated = await catalog.update_permission(
            db_session, permission.id, description="Build monthly reports"
        )
        assert updated.description == "Build monthly reports"
        assert updated.name == "generate_reports"

    async def test_unknown_permission(self, db_session):
        with pytest.raises(ResourceNotFoundError):
            await catalog.get_permission(db_session, "missing")

    async def test_delete_removes_from_every_grant_set(
        self, db_session, supervisor, employee, admin
    ):
        permission = await _by_name(db_session, "deliver_items")

        await catalog.delete_permission(db_session, permission.id)
        await db_session.commit()

        for account in (supervisor, employee, admin):
            stored = await load_account(db_session, account.id)
            assert "deliver_items" not in stored.permission_names
        remaining = await db_session.scalar(
            select(func.count()).select_from(account_permissions).where(
                account_permissions.c.permission_id == permission.id
            )
        )
        assert remaining == 0

    async def test_delete_bumps_holder_versions(self, db_session, employee):
        before = (await load_account(db_session, employee.id)).version
        permission = await _by_name(db_session, "create_items")

        await catalog.delete_permission(db_session, permission.id)

        assert (await load_account(db_session, employee.id)).version == before + 1


@pytest.mark.asyncio
class TestSeeding:

    async def test_seed_is_idempotent(self, db_session):
        summary = await catalog.seed_permissions(db_session)
        assert summary == {"created": [], "updated": [], "removed": []}

    async def test_seed_updates_descriptions(self, db_session):
        seeds = tuple(
            PermissionSeed(s.name, "Changed", s.component, s.action)
            if s.name == "view_dashboard" else s
            for s in DEFAULT_PERMISSIONS
        )
        summary = await catalog.seed_permissions(db_session, seeds)
        assert summary["updated"] == ["view_dashboard"]
        assert (await _by_name(db_session, "view_dashboard")).description == "Changed"

    async def test_prune_removes_unlisted(self, db_session, employee):
        await catalog.create_permission(db_session, name="legacy_upload_files")
        summary = await catalog.seed_permissions(db_session, prune=True)

        assert summary["removed"] == ["legacy_upload_files"]
        names = {p.name for p in await catalog.list_permissions(db_session)}
        assert names == ALL_PERMISSION_NAMES
