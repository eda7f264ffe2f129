"""Auth routes: register, login, profile, password, permission listings.

Route overview:
  POST /register            — self-registration (employee baseline)
  POST /login               — employee number + password login
  GET  /me                  — current profile with reconciled permissions
  POST /reset-password      — change own password (current password required)
  GET  /permissions         — built-in permission list (public)
  GET  /system-permissions  — live permission catalog (authenticated)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth import catalog
from lostfound.auth.deps import get_current_identity
from lostfound.auth.identity import (
    EffectiveIdentity,
    assign_role_baseline,
    find_by_employee_number,
    load_account,
)
from lostfound.auth.jwt import issue_access_token
from lostfound.auth.password import hash_password, verify_password
from lostfound.auth.permissions import DEFAULT_PERMISSIONS
from lostfound.auth.reconcile import reconcile_account
from lostfound.database import get_db
from lostfound.models.account import Account, AccountRole
from lostfound.schemas.auth import (
    AccountOut,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from lostfound.schemas.permission import PermissionOut, PermissionSeedOut

logger = logging.getLogger("lostfound.auth")

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _build_account_out(identity: EffectiveIdentity) -> AccountOut:
    return AccountOut(
        id=identity.account_id,
        employee_number=identity.employee_number,
        first_name=identity.first_name,
        last_name=identity.last_name,
        role=identity.role.value,
        permissions=sorted(identity.permissions),
    )


def _build_token_response(identity: EffectiveIdentity) -> TokenResponse:
    return TokenResponse(
        access_token=issue_access_token(identity),
        user=_build_account_out(identity),
    )


# ── POST /register ──────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Self-registration.  The account starts as an employee."""
    if await find_by_employee_number(db, body.employee_number):
        raise HTTPException(status_code=400, detail="Employee number already registered")

    account = Account(
        employee_number=body.employee_number,
        hashed_password=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        role=AccountRole.EMPLOYEE,
    )
    await assign_role_baseline(db, account)
    db.add(account)
    await db.flush()

    logger.info("Registered account %s", account.employee_number)
    return _build_token_response(EffectiveIdentity.from_account(account))


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Employee number + password login.

    Grants are reconciled before the token is minted, so an admin's token
    lists the whole catalog.
    """
    account = await find_by_employee_number(db, body.employee_number)
    if not account or not verify_password(body.password, account.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    identity = await reconcile_account(db, account.id)
    return _build_token_response(identity)


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=AccountOut)
async def me(identity: EffectiveIdentity = Depends(get_current_identity)):
    """Return the current account's profile and reconciled permissions."""
    return _build_account_out(identity)


# ── POST /reset-password ────────────────────────────────────

@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    identity: EffectiveIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    account = await load_account(db, identity.account_id)
    if not verify_password(body.current_password, account.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    account.hashed_password = hash_password(body.new_password)
    await db.flush()
    logger.info("Password changed for %s", account.employee_number)
    return MessageResponse(message="Password updated successfully")


# ── Permission listings ─────────────────────────────────────

@router.get("/permissions", response_model=list[PermissionSeedOut])
async def builtin_permissions():
    """The built-in permission set every deployment is seeded with."""
    return list(DEFAULT_PERMISSIONS)


@router.get("/system-permissions", response_model=list[PermissionOut])
async def system_permissions(
    identity: EffectiveIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """The live permission catalog, sorted by name."""
    return await catalog.list_permissions(db)
