"""User management routes.

Everything here except ``GET /{id}/permissions`` requires ``manage_users``.
Reading an account's grants is open to the account itself and to admins.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth.deps import get_current_identity, require_permission
from lostfound.auth.identity import (
    EffectiveIdentity,
    assign_role_baseline,
    find_by_employee_number,
    replace_grants,
)
from lostfound.auth.password import hash_password
from lostfound.auth.permissions import MANAGE_USERS, as_grants
from lostfound.auth.predicates import is_admin
from lostfound.database import get_db
from lostfound.middleware.exceptions import PermissionDeniedError, ResourceNotFoundError
from lostfound.models.account import Account
from lostfound.schemas.auth import MessageResponse
from lostfound.schemas.user import (
    AccountCreate,
    AccountDetail,
    AccountUpdate,
    GrantsOut,
    GrantsUpdate,
    PasswordReset,
)

logger = logging.getLogger("lostfound.users")

router = APIRouter()

manage_users = require_permission(MANAGE_USERS)


def _detail(account: Account) -> AccountDetail:
    return AccountDetail(
        id=account.id,
        employee_number=account.employee_number,
        first_name=account.first_name,
        last_name=account.last_name,
        role=account.role.value,
        permissions=account.permission_names,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


async def _get_account(db: AsyncSession, account_id: str) -> Account:
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if not account:
        raise ResourceNotFoundError("User", account_id)
    return account


# ── List / get ───────────────────────────────────────────────

@router.get("/", response_model=list[AccountDetail])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(manage_users),
):
    result = await db.execute(select(Account).order_by(Account.employee_number))
    return [_detail(a) for a in result.scalars().all()]


@router.get("/{account_id}", response_model=AccountDetail)
async def get_user(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(manage_users),
):
    return _detail(await _get_account(db, account_id))


# ── Create ───────────────────────────────────────────────────

@router.post("/", response_model=AccountDetail, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: AccountCreate,
    db: AsyncSession = Depends(get_db),
    manager: EffectiveIdentity = Depends(manage_users),
):
    """Create an account; its grants start at the role's baseline."""
    if await find_by_employee_number(db, body.employee_number):
        raise HTTPException(status_code=400, detail="Employee number already registered")

    account = Account(
        employee_number=body.employee_number,
        hashed_password=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
    )
    await assign_role_baseline(db, account)
    db.add(account)
    await db.flush()

    logger.info(
        "Account %s created by %s", account.employee_number, manager.employee_number,
        extra={"role": account.role.value},
    )
    return _detail(account)


# ── Update ───────────────────────────────────────────────────

@router.put("/{account_id}", response_model=AccountDetail)
async def update_user(
    account_id: str,
    body: AccountUpdate,
    db: AsyncSession = Depends(get_db),
    manager: EffectiveIdentity = Depends(manage_users),
):
    """Partial update.  A role change resets grants to the new baseline."""
    account = await _get_account(db, account_id)
    changes = body.model_dump(exclude_unset=True)

    password = changes.pop("password", None)
    if password:
        account.hashed_password = hash_password(password)

    new_role = changes.pop("role", None)
    for key, value in changes.items():
        if value is not None:
            setattr(account, key, value)

    if new_role is not None and new_role != account.role:
        logger.info(
            "Role of %s changed %s → %s by %s",
            account.employee_number, account.role.value, new_role.value,
            manager.employee_number,
        )
        account.role = new_role
        await assign_role_baseline(db, account)

    await db.flush()
    return _detail(account)


# ── Grant set ────────────────────────────────────────────────

@router.put("/{account_id}/permissions", response_model=GrantsOut)
async def set_user_permissions(
    account_id: str,
    body: GrantsUpdate,
    db: AsyncSession = Depends(get_db),
    manager: EffectiveIdentity = Depends(manage_users),
):
    """Replace the grant set by permission names.  Unknown names reject the request."""
    account = await _get_account(db, account_id)
    await replace_grants(db, account, as_grants(body.permissions))
    await db.flush()

    logger.info(
        "Grants of %s replaced by %s", account.employee_number, manager.employee_number,
        extra={"permissions": account.permission_names},
    )
    return GrantsOut(
        account_id=account.id,
        role=account.role.value,
        permissions=account.permission_names,
    )


@router.get("/{account_id}/permissions", response_model=GrantsOut)
async def get_user_permissions(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(get_current_identity),
):
    if identity.account_id != account_id and not is_admin(identity):
        raise PermissionDeniedError("Not authorized to view these permissions")

    if identity.account_id == account_id:
        # Already reconciled for this request
        return GrantsOut(
            account_id=identity.account_id,
            role=identity.role.value,
            permissions=sorted(identity.permissions),
        )

    account = await _get_account(db, account_id)
    return GrantsOut(
        account_id=account.id,
        role=account.role.value,
        permissions=account.permission_names,
    )


# ── Password / delete ────────────────────────────────────────

@router.post("/{account_id}/reset-password", response_model=MessageResponse)
async def reset_user_password(
    account_id: str,
    body: PasswordReset,
    db: AsyncSession = Depends(get_db),
    manager: EffectiveIdentity = Depends(manage_users),
):
    account = await _get_account(db, account_id)
    account.hashed_password = hash_password(body.new_password)
    await db.flush()
    logger.info("Password of %s reset by %s", account.employee_number, manager.employee_number)
    return MessageResponse(message="Password reset successfully")


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    manager: EffectiveIdentity = Depends(manage_users),
):
    if account_id == manager.account_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    account = await _get_account(db, account_id)
    await db.delete(account)
    await db.flush()
    logger.info("Account %s deleted by %s", account.employee_number, manager.employee_number)
