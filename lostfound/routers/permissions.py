"""Permission catalog routes.

Listing is open to any authenticated account; create, update and delete
are admin only.  Deleting a permission removes it from every grant set.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth import catalog
from lostfound.auth.deps import get_current_identity, require_admin
from lostfound.auth.identity import EffectiveIdentity
from lostfound.database import get_db
from lostfound.schemas.permission import PermissionCreate, PermissionOut, PermissionUpdate

router = APIRouter()


@router.get("/", response_model=list[PermissionOut])
async def list_permissions(
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(get_current_identity),
):
    return await catalog.list_permissions(db)


@router.post("/", response_model=PermissionOut, status_code=status.HTTP_201_CREATED)
async def create_permission(
    body: PermissionCreate,
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(require_admin),
):
    return await catalog.create_permission(db, **body.model_dump())


@router.put("/{permission_id}", response_model=PermissionOut)
async def update_permission(
    permission_id: str,
    body: PermissionUpdate,
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(require_admin),
):
    return await catalog.update_permission(
        db, permission_id, **body.model_dump(exclude_unset=True)
    )


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(
    permission_id: str,
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(require_admin),
):
    await catalog.delete_permission(db, permission_id)
