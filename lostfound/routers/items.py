"""Found item routes.

Every read and write goes through the own-vs-all item check: callers with
``<action>_all_items`` act on any item, callers with only
``<action>_own_items`` act on the items they found.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth.deps import authorize_item, require_any_permission, require_permission
from lostfound.auth.identity import EffectiveIdentity
from lostfound.auth.permissions import (
    CREATE_ITEMS,
    DELETE_ALL_ITEMS,
    DELETE_OWN_ITEMS,
    EDIT_ALL_ITEMS,
    EDIT_OWN_ITEMS,
    VIEW_ALL_ITEMS,
    VIEW_OWN_ITEMS,
)
from lostfound.auth.predicates import has_permission, is_admin
from lostfound.database import get_db
from lostfound.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from lostfound.models.item import FoundItem, ItemStatus
from lostfound.schemas.common import PaginatedResponse
from lostfound.schemas.item import ItemCreate, ItemOut, ItemUpdate

logger = logging.getLogger("lostfound.items")

router = APIRouter()

can_view_items = require_any_permission(VIEW_ALL_ITEMS, VIEW_OWN_ITEMS)


# ── Helpers ──────────────────────────────────────────────────

async def get_item(db: AsyncSession, item_id: str) -> FoundItem:
    result = await db.execute(
        select(FoundItem)
        .where(FoundItem.id == item_id)
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise ResourceNotFoundError("Item", item_id)
    return item


def visible_items(stmt, identity: EffectiveIdentity):
    """Restrict a FoundItem query to what ``identity`` may view."""
    if is_admin(identity) or has_permission(identity, VIEW_ALL_ITEMS):
        return stmt
    return stmt.where(FoundItem.found_by == identity.account_id)


async def _paginate(db: AsyncSession, stmt, limit: int, offset: int) -> PaginatedResponse[ItemOut]:
    total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    result = await db.execute(
        stmt.order_by(FoundItem.created_at.desc()).limit(limit).offset(offset)
    )
    return PaginatedResponse(
        items=[ItemOut.model_validate(i) for i in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )


# ── Create ───────────────────────────────────────────────────

@router.post("/", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: ItemCreate,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(require_permission(CREATE_ITEMS)),
):
    item = FoundItem(
        **body.model_dump(),
        found_by=identity.account_id,
        status=ItemStatus.ON_HAND.value,
    )
    db.add(item)
    await db.flush()

    logger.info(
        "Item %s found on %s recorded by %s",
        item.id, item.flight_number, identity.employee_number,
    )
    return ItemOut.model_validate(await get_item(db, item.id))


# ── List / search / get ──────────────────────────────────────

@router.get("/", response_model=PaginatedResponse[ItemOut])
async def list_items(
    status_filter: ItemStatus | None = Query(None, alias="status"),
    include_archived: bool = False,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(can_view_items),
):
    """All items for ``view_all_items`` holders, own items otherwise."""
    stmt = visible_items(select(FoundItem), identity)
    if status_filter:
        stmt = stmt.where(FoundItem.status == status_filter.value)
    if not include_archived:
        stmt = stmt.where(FoundItem.archived.is_(False))
    return await _paginate(db, stmt, limit, offset)


@router.get("/search", response_model=PaginatedResponse[ItemOut])
async def search_items(
    q: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(can_view_items),
):
    """Case-insensitive match on flight number, description, category or location."""
    pattern = f"%{q}%"
    stmt = visible_items(select(FoundItem), identity).where(
        FoundItem.archived.is_(False),
        or_(
            FoundItem.flight_number.ilike(pattern),
            FoundItem.description.ilike(pattern),
            FoundItem.category.ilike(pattern),
            FoundItem.location.ilike(pattern),
        ),
    )
    return await _paginate(db, stmt, limit, offset)


@router.get("/{item_id}", response_model=ItemOut)
async def read_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(can_view_items),
):
    item = await get_item(db, item_id)
    authorize_item(identity, "view", item.found_by)
    return ItemOut.model_validate(item)


# ── Update / delete ──────────────────────────────────────────

@router.put("/{item_id}", response_model=ItemOut)
async def update_item(
    item_id: str,
    body: ItemUpdate,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(require_any_permission(EDIT_ALL_ITEMS, EDIT_OWN_ITEMS)),
):
    item = await get_item(db, item_id)
    authorize_item(identity, "edit", item.found_by)

    updates = body.model_dump(exclude_unset=True)
    new_status = updates.pop("status", None)
    if new_status == ItemStatus.DELIVERED:
        raise BusinessLogicError(
            "Use the delivery endpoint to mark an item as delivered",
            error_code="INVALID_STATUS_CHANGE",
        )
    if item.status == ItemStatus.DELIVERED.value:
        raise BusinessLogicError(
            "Delivered items are edited through /api/delivered-items",
            error_code="ITEM_DELIVERED",
        )
    if new_status is not None:
        item.status = new_status.value

    for key, value in updates.items():
        if value is not None:
            setattr(item, key, value)

    await db.flush()
    return ItemOut.model_validate(await get_item(db, item.id))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(
        require_any_permission(DELETE_ALL_ITEMS, DELETE_OWN_ITEMS)
    ),
):
    item = await get_item(db, item_id)
    authorize_item(identity, "delete", item.found_by)
    await db.delete(item)
    await db.flush()
    logger.info("Item %s deleted by %s", item_id, identity.employee_number)
