"""Management CLI for catalog and account bootstrap.

Usage:
    python -m lostfound.cli seed-permissions [--prune]   # Upsert the built-in catalog
    python -m lostfound.cli create-admin [EMPLOYEE_NO]   # Create or promote the first admin
    python -m lostfound.cli list-permissions             # Show the live catalog

create-admin reads the password from ADMIN_PASSWORD.
"""

import asyncio
import sys

from lostfound.auth import catalog
from lostfound.auth.identity import find_by_employee_number
from lostfound.auth.password import hash_password
from lostfound.auth.reconcile import reconcile_account
from lostfound.config import settings
from lostfound.database import async_session
from lostfound.models.account import Account, AccountRole


async def seed_permissions(prune: bool = False) -> dict:
    async with async_session() as session:
        summary = await catalog.seed_permissions(session, prune=prune)
        await session.commit()

    for key in ("created", "updated", "removed"):
        for name in summary[key]:
            print(f"  {key:<8} {name}")
    print(
        f"\n{len(summary['created'])} created, {len(summary['updated'])} updated, "
        f"{len(summary['removed'])} removed"
    )
    return summary


async def create_admin(employee_number: str, password: str) -> None:
    async with async_session() as session:
        account = await find_by_employee_number(session, employee_number)
        if account is None:
            account = Account(
                employee_number=employee_number,
                hashed_password=hash_password(password),
                first_name="Admin",
                last_name="User",
                role=AccountRole.ADMIN,
            )
            session.add(account)
            print(f"  Created admin {employee_number}")
        else:
            account.role = AccountRole.ADMIN
            account.hashed_password = hash_password(password)
            print(f"  Promoted {employee_number} to admin")
        await session.flush()

        identity = await reconcile_account(session, account.id)
        await session.commit()

    print(f"  {len(identity.permissions)} permission(s) granted")


async def list_permissions() -> None:
    async with async_session() as session:
        permissions = await catalog.list_permissions(session)
    for p in permissions:
        print(f"  {p.name:<28} {p.description or ''}")
    print(f"\n{len(permissions)} permission(s)")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "seed-permissions":
        asyncio.run(seed_permissions(prune="--prune" in sys.argv[2:]))
    elif cmd == "create-admin":
        if not settings.admin_password:
            print("Set ADMIN_PASSWORD before creating an admin.")
            sys.exit(1)
        number = sys.argv[2] if len(sys.argv) > 2 else settings.admin_employee_number
        asyncio.run(create_admin(number, settings.admin_password))
    elif cmd == "list-permissions":
        asyncio.run(list_permissions())
    else:
        print("Usage: python -m lostfound.cli [seed-permissions|create-admin|list-permissions]")
