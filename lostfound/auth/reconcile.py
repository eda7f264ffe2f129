"""Self-healing permission reconciliation.

Every authenticated request runs ``reconcile_account`` before any
authorization decision:

  1. re-read the account and its grant set
  2. re-read the full permission catalog (nothing is cached)
  3. compute the repaired grant set with the pure ``reconcile`` function
  4. persist only when something changed

Persisting goes through the account's ``version`` column, so a concurrent
writer (another request reconciling the same account, an admin editing its
grants, a permission being deleted) makes the flush fail with
``StaleDataError``.  The whole sequence is then rolled back and retried up
to ``settings.reconcile_max_attempts`` times.  Any storage failure ends the
request with ``StoreFaultError``; nothing falls back to a partial identity.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from lostfound.auth import catalog
from lostfound.auth.identity import EffectiveIdentity, load_account
from lostfound.auth.permissions import baseline_for
from lostfound.config import settings
from lostfound.middleware.exceptions import StoreFaultError
from lostfound.models.account import Account, AccountRole

logger = logging.getLogger("lostfound.reconcile")


@dataclass(frozen=True)
class ReconcileResult:
    grant_names: frozenset[str]
    added: frozenset[str]
    changed: bool


def reconcile(
    role: AccountRole,
    granted_names: list[str] | set[str] | frozenset[str],
    catalog_names: set[str] | frozenset[str],
) -> ReconcileResult:
    """Compute the repaired grant set for one account.

    Admins get exactly the catalog.  Other roles keep what they hold and
    gain whatever part of their baseline is missing; manual extras stay.
    Names outside the catalog never survive.
    """
    catalog_names = frozenset(catalog_names)
    current = frozenset(granted_names) & catalog_names

    if role == AccountRole.ADMIN:
        grant_names = catalog_names
    else:
        grant_names = current | baseline_for(role, catalog_names)

    return ReconcileResult(
        grant_names=grant_names,
        added=grant_names - current,
        changed=grant_names != frozenset(granted_names),
    )


async def _reconcile_once(db: AsyncSession, account_id: str) -> Account:
    account = await load_account(db, account_id)
    permissions = await catalog.list_permissions(db)
    by_name = {p.name: p for p in permissions}

    result = reconcile(account.role, account.permission_names, set(by_name))
    if not result.changed:
        return account

    if account.role == AccountRole.ADMIN:
        account.set_grants([by_name[name] for name in result.grant_names])
    else:
        account.add_grants([by_name[name] for name in sorted(result.added)])
    await db.flush()

    logger.info(
        "Reconciled grants for %s: added %s",
        account.employee_number,
        ", ".join(sorted(result.added)) or "none",
        extra={"account_id": account.id, "role": account.role.value},
    )
    return account


async def reconcile_account(db: AsyncSession, account_id: str) -> EffectiveIdentity:
    """Load, repair and snapshot an account's effective identity.

    Raises AccountNotFoundError when the account is gone and StoreFaultError
    on any storage failure, including running out of conflict retries.
    """
    attempts = max(1, settings.reconcile_max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            account = await _reconcile_once(db, account_id)
            return EffectiveIdentity.from_account(account)
        except StaleDataError:
            await db.rollback()
            logger.warning(
                "Grant set of account %s changed concurrently (attempt %d/%d)",
                account_id, attempt, attempts,
            )
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Store fault while reconciling account %s", account_id)
            raise StoreFaultError() from exc

    raise StoreFaultError("Could not resolve permissions, please retry")
