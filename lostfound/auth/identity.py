"""Identity store access and the request-scoped identity snapshot.

``EffectiveIdentity`` is what authorization predicates see: the account id,
role and the *reconciled* permission names, frozen for the rest of the
request.  It is built only from rows loaded with their grants resolved to
catalog permissions.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lostfound.auth import catalog
from lostfound.auth.permissions import GrantRef, baseline_for, resolve_grants
from lostfound.middleware.exceptions import AccountNotFoundError, BusinessLogicError
from lostfound.models.account import Account, AccountRole


@dataclass(frozen=True)
class EffectiveIdentity:
    account_id: str
    employee_number: str
    first_name: str
    last_name: str
    role: AccountRole
    permissions: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @classmethod
    def from_account(cls, account: Account) -> EffectiveIdentity:
        return cls(
            account_id=account.id,
            employee_number=account.employee_number,
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role,
            permissions=frozenset(account.permission_names),
        )


async def load_account(db: AsyncSession, account_id: str) -> Account:
    """Fresh read of an account with its grants resolved.

    Always overwrites any copy already in the session so the grant set and
    version reflect the database, not an earlier read.
    """
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .options(selectinload(Account.permissions))
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if not account:
        raise AccountNotFoundError(account_id)
    return account


async def find_by_employee_number(db: AsyncSession, employee_number: str) -> Account | None:
    result = await db.execute(
        select(Account)
        .where(Account.employee_number == employee_number)
        .options(selectinload(Account.permissions))
    )
    return result.scalar_one_or_none()


async def assign_role_baseline(db: AsyncSession, account: Account) -> None:
    """Reset the grant set to exactly the role's baseline.

    Used at registration and on role change.  Manually granted extras are
    dropped.
    """
    permissions = await catalog.list_permissions(db)
    wanted = baseline_for(account.role, {p.name for p in permissions})
    account.set_grants([p for p in permissions if p.name in wanted])


async def replace_grants(
    db: AsyncSession,
    account: Account,
    grants: list[GrantRef],
) -> None:
    """Replace the grant set from grant references.

    Unknown names are rejected as a whole; nothing is changed.  Admin
    accounts always keep the full catalog on top of the requested grants.
    """
    permissions = await catalog.list_permissions(db)
    resolved, unknown = resolve_grants(grants, permissions)
    if unknown:
        raise BusinessLogicError(
            f"Invalid permissions provided: {', '.join(sorted(unknown))}",
            error_code="INVALID_PERMISSIONS",
        )
    if account.role == AccountRole.ADMIN:
        resolved = permissions
    account.set_grants(resolved)
