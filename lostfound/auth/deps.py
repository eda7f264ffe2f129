"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_identity       → bearer token → verify → reconcile → EffectiveIdentity
  require_permission(name)   → restrict to holders of one permission
  require_any_permission(..) → restrict to holders of at least one permission
  require_admin              → restrict to the admin role
  authorize_item(...)        → own-vs-all check against a loaded item

The permission list embedded in the token is ignored here: every check
runs against the reconciled grant set read during this request.
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth.identity import EffectiveIdentity
from lostfound.auth.jwt import verify_access_token
from lostfound.auth.predicates import can_act_on_item, has_any_permission, has_permission, is_admin
from lostfound.auth.reconcile import reconcile_account
from lostfound.database import get_db
from lostfound.middleware.exceptions import InvalidTokenError, NoTokenError, PermissionDeniedError

logger = logging.getLogger("lostfound.auth")

bearer_scheme = HTTPBearer(auto_error=False)


# ── Core identity dependency ────────────────────────────────

async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> EffectiveIdentity:
    """Resolve the caller's identity for this request.

    Raises NoTokenError, InvalidTokenError, TokenExpiredError,
    AccountNotFoundError or StoreFaultError; each ends the request.
    """
    if credentials is None or not credentials.credentials:
        raise NoTokenError()

    claims = verify_access_token(credentials.credentials)
    identity = await reconcile_account(db, claims.account_id)
    if identity.employee_number != claims.employee_number:
        # Raising rolls back any repair made above
        raise InvalidTokenError("Token does not match the account")
    return identity


# ── Permission-based access control ─────────────────────────

def require_permission(name: str):
    """Dependency factory — restrict to identities holding ``name``.

    Usage:
        @router.post("/")
        async def create_item(
            identity: EffectiveIdentity = Depends(require_permission(CREATE_ITEMS)),
        ):
            ...
    """
    async def _check(
        identity: EffectiveIdentity = Depends(get_current_identity),
    ) -> EffectiveIdentity:
        if not has_permission(identity, name):
            logger.info(
                "Denied %s: missing %s", identity.employee_number, name,
                extra={"account_id": identity.account_id},
            )
            raise PermissionDeniedError()
        return identity

    return _check


def require_any_permission(*names: str):
    """Dependency factory — restrict to identities holding at least one of ``names``."""
    async def _check(
        identity: EffectiveIdentity = Depends(get_current_identity),
    ) -> EffectiveIdentity:
        if not has_any_permission(identity, names):
            logger.info(
                "Denied %s: needs one of %s", identity.employee_number, ", ".join(names),
                extra={"account_id": identity.account_id},
            )
            raise PermissionDeniedError()
        return identity

    return _check


async def require_admin(
    identity: EffectiveIdentity = Depends(get_current_identity),
) -> EffectiveIdentity:
    """Restrict endpoint to the admin role."""
    if not is_admin(identity):
        raise PermissionDeniedError("Admin access required")
    return identity


# ── Item ownership ──────────────────────────────────────────

def authorize_item(identity: EffectiveIdentity, action: str, owner_id: str | None) -> None:
    """Raise PermissionDeniedError unless ``identity`` may ``action`` the item."""
    if not can_act_on_item(identity, action, owner_id):
        raise PermissionDeniedError(f"You do not have permission to {action} this item")
