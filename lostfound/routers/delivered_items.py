"""Delivery routes.

  POST /{item_id}/deliver  — hand an item to its owner (``deliver_items``)
  GET  /                   — delivered items (``view_delivered_items``)
  GET  /my                 — delivered items the caller found
  GET  /{item_id}          — one delivered item
  PUT  /{item_id}          — correct a delivered record (own/all edit tier)
  POST /{item_id}/revert   — undo a delivery (``revert_delivered_status``)

Reverting never rewrites history: the delivered record is archived and a
fresh on-hand item takes its place.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.auth.deps import (
    authorize_item,
    get_current_identity,
    require_any_permission,
    require_permission,
)
from lostfound.auth.identity import EffectiveIdentity
from lostfound.auth.permissions import EDIT_ALL_ITEMS, EDIT_OWN_ITEMS, VIEW_DELIVERED_ITEMS
from lostfound.database import get_db
from lostfound.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from lostfound.models.item import FoundItem, ItemStatus
from lostfound.routers.items import get_item
from lostfound.schemas.item import DeliverRequest, DeliveredUpdate, ItemOut

logger = logging.getLogger("lostfound.delivery")

router = APIRouter()


async def _get_delivered(db: AsyncSession, item_id: str) -> FoundItem:
    item = await get_item(db, item_id)
    if item.status != ItemStatus.DELIVERED.value:
        raise ResourceNotFoundError("Delivered item", item_id)
    return item


# ── Deliver ──────────────────────────────────────────────────

@router.post("/{item_id}/deliver", response_model=ItemOut)
async def deliver_item(
    item_id: str,
    body: DeliverRequest,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(get_current_identity),
):
    item = await get_item(db, item_id)
    authorize_item(identity, "deliver", item.found_by)

    if item.archived or item.status == ItemStatus.DELIVERED.value:
        raise BusinessLogicError("Item has already been delivered", error_code="ITEM_DELIVERED")

    item.status = ItemStatus.DELIVERED.value
    item.delivered_by = identity.account_id
    item.delivered_at = body.delivered_at or datetime.utcnow()
    item.customer_name = body.customer_name
    item.customer_last_name = body.customer_last_name
    item.customer_signature = body.customer_signature
    await db.flush()

    logger.info("Item %s delivered by %s", item.id, identity.employee_number)
    return ItemOut.model_validate(await get_item(db, item.id))


# ── List / get ───────────────────────────────────────────────

@router.get("/", response_model=list[ItemOut])
async def list_delivered(
    search: str | None = Query(None, min_length=1),
    include_archived: bool = False,
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(require_permission(VIEW_DELIVERED_ITEMS)),
):
    stmt = select(FoundItem).where(FoundItem.status == ItemStatus.DELIVERED.value)
    if not include_archived:
        stmt = stmt.where(FoundItem.archived.is_(False))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            FoundItem.flight_number.ilike(pattern),
            FoundItem.description.ilike(pattern),
            FoundItem.customer_name.ilike(pattern),
            FoundItem.customer_last_name.ilike(pattern),
        ))

    result = await db.execute(stmt.order_by(FoundItem.delivered_at.desc()))
    return [ItemOut.model_validate(i) for i in result.scalars().all()]


@router.get("/my", response_model=list[ItemOut])
async def list_my_delivered(
    include_archived: bool = False,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(get_current_identity),
):
    """Delivered items found by the caller."""
    stmt = select(FoundItem).where(
        FoundItem.status == ItemStatus.DELIVERED.value,
        FoundItem.found_by == identity.account_id,
    )
    if not include_archived:
        stmt = stmt.where(FoundItem.archived.is_(False))

    result = await db.execute(stmt.order_by(FoundItem.delivered_at.desc()))
    return [ItemOut.model_validate(i) for i in result.scalars().all()]


@router.get("/{item_id}", response_model=ItemOut)
async def read_delivered(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    _: EffectiveIdentity = Depends(require_permission(VIEW_DELIVERED_ITEMS)),
):
    return ItemOut.model_validate(await _get_delivered(db, item_id))


# ── Correct ──────────────────────────────────────────────────

@router.put("/{item_id}", response_model=ItemOut)
async def update_delivered(
    item_id: str,
    body: DeliveredUpdate,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(require_any_permission(EDIT_ALL_ITEMS, EDIT_OWN_ITEMS)),
):
    """Correct descriptive or customer fields of a delivered record.

    Same own/all edit tier as on-hand items, judged on who found the item.
    """
    item = await _get_delivered(db, item_id)
    authorize_item(identity, "edit", item.found_by)

    if item.archived:
        raise BusinessLogicError("Archived deliveries cannot be edited", error_code="ITEM_ARCHIVED")

    for key, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(item, key, value)
    await db.flush()

    logger.info("Delivered item %s corrected by %s", item.id, identity.employee_number)
    return ItemOut.model_validate(await get_item(db, item.id))


# ── Revert ───────────────────────────────────────────────────

@router.post("/{item_id}/revert", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def revert_delivery(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    identity: EffectiveIdentity = Depends(get_current_identity),
):
    """Archive the delivered record and put a copy back on hand.

    The new item is found by the reverting account on the delivery date.
    """
    delivered = await _get_delivered(db, item_id)
    authorize_item(identity, "revert", delivered.found_by)

    if delivered.archived:
        raise BusinessLogicError("Delivery has already been reverted", error_code="ITEM_ARCHIVED")

    restored = FoundItem(
        flight_number=delivered.flight_number,
        date_found=delivered.delivered_at or datetime.utcnow(),
        location=delivered.location,
        description=delivered.description,
        category=delivered.category,
        image_urls=list(delivered.image_urls or []),
        status=ItemStatus.ON_HAND.value,
        found_by=identity.account_id,
    )
    delivered.archived = True
    db.add(restored)
    await db.flush()

    logger.info(
        "Delivery of %s reverted by %s as item %s",
        delivered.id, identity.employee_number, restored.id,
    )
    return ItemOut.model_validate(await get_item(db, restored.id))
