"""
Purchasing.

A purchase order is raised against one supplier and lives in that supplier's
section. Lines are edited while the order is a draft, the order is then
placed, and receiving it adds each line's received quantity to the item's
stock and records the line's unit price as the item's last cost price.

draft -> ordered -> received; any other transition is a 409.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.tenancy import (
    authorize_purchase_order,
    authorize_section,
    authorize_supplier,
    get_item_or_404,
)
from db.database import get_async_session, insert_for
from db.models import (
    Item as ItemModel,
    PurchaseItem as PurchaseItemModel,
    PurchaseOrder as PurchaseOrderModel,
)
from schemas.purchasing import PurchaseLineUpdate, PurchaseOrderCreate, PurchaseReceive

logger = get_logger(__name__)

router = APIRouter()

DRAFT = "draft"
ORDERED = "ordered"
RECEIVED = "received"


def _ensure_status(order: PurchaseOrderModel, expected: str) -> None:
    if order.status != expected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Purchase order is {order.status}, expected {expected}",
        )


async def _item_in_section(db: AsyncSession, item_id: str, section_id: str) -> ItemModel:
    item = await get_item_or_404(db, item_id)
    if item.section_id != section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item does not belong to supplier section")
    return item


async def _load_lines(db: AsyncSession, order_id: str) -> List[PurchaseItemModel]:
    res = await db.execute(
        select(PurchaseItemModel)
        .where(PurchaseItemModel.purchase_order_id == order_id)
        .order_by(PurchaseItemModel.created_at)
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().all())


async def _refresh_total(db: AsyncSession, order: PurchaseOrderModel) -> None:
    res = await db.execute(
        select(func.coalesce(func.sum(PurchaseItemModel.quantity * PurchaseItemModel.cost_price), 0))
        .where(PurchaseItemModel.purchase_order_id == order.id)
    )
    order.total_amount = int(round(res.scalar_one()))


async def _serialize(db: AsyncSession, order: PurchaseOrderModel) -> Dict:
    lines = await _load_lines(db, order.id)
    return {**order.to_schema, "items": [line.to_schema for line in lines]}


async def _commit(db: AsyncSession, action: str, order_id: str) -> None:
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to %s purchase order %s", action, order_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action} purchase order",
        )


@router.get("", response_model=Dict)
async def list_purchase_orders(
    section_id: Optional[str] = Query(None, alias="sectionId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sectionId is required")

    await authorize_section(db, user, section_id)

    stmt = select(PurchaseOrderModel).where(PurchaseOrderModel.section_id == section_id)
    if status_filter:
        stmt = stmt.where(PurchaseOrderModel.status == status_filter)
    res = await db.execute(stmt.order_by(PurchaseOrderModel.date.desc()))
    return {"purchaseOrders": [o.to_schema for o in res.scalars().all()]}


@router.post("", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not payload.supplier_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="supplierId is required")

    # Organization and section come from the stored supplier
    supplier = await authorize_supplier(db, user, payload.supplier_id)

    seen = set()
    for line in payload.items:
        if line.item_id in seen:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Duplicate item in purchase order")
        seen.add(line.item_id)
        await _item_in_section(db, line.item_id, supplier.section_id)

    now = datetime.now(timezone.utc)
    order = PurchaseOrderModel(
        organization_id=supplier.organization_id,
        section_id=supplier.section_id,
        supplier_id=supplier.id,
        date=payload.date or now,
        status=DRAFT,
        created_at=now,
    )
    db.add(order)
    await db.flush()  # Flush to get the ID
    for line in payload.items:
        db.add(
            PurchaseItemModel(
                purchase_order_id=order.id,
                item_id=line.item_id,
                quantity=line.quantity,
                cost_price=line.cost_price,
                created_at=now,
            )
        )
    await db.flush()
    await _refresh_total(db, order)
    await _commit(db, "create", order.id)

    logger.info("Purchase order %s created by %s", order.id, user.uid)
    return await _serialize(db, order)


@router.get("/{order_id}", response_model=Dict)
async def get_purchase_order(
    order_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    order = await authorize_purchase_order(db, user, order_id)
    return await _serialize(db, order)


@router.put("/{order_id}/items/{item_id}", response_model=Dict)
async def set_purchase_line(
    order_id: str,
    item_id: str,
    payload: PurchaseLineUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Add an item to a draft order, or change its quantity and price."""
    order = await authorize_purchase_order(db, user, order_id)
    _ensure_status(order, DRAFT)
    await _item_in_section(db, item_id, order.section_id)

    tbl = PurchaseItemModel.__table__
    upsert = (
        insert_for(db, tbl)
        .values(
            id=str(uuid.uuid4()),
            purchase_order_id=order_id,
            item_id=item_id,
            quantity=payload.quantity,
            cost_price=payload.cost_price,
            created_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_update(
            index_elements=[tbl.c.purchase_order_id, tbl.c.item_id],
            set_={"quantity": payload.quantity, "cost_price": payload.cost_price},
        )
    )
    await db.execute(upsert)
    await _refresh_total(db, order)
    await _commit(db, "update", order_id)
    return await _serialize(db, order)


@router.delete("/{order_id}/items/{item_id}", response_model=Dict)
async def remove_purchase_line(
    order_id: str,
    item_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    order = await authorize_purchase_order(db, user, order_id)
    _ensure_status(order, DRAFT)

    res = await db.execute(
        delete(PurchaseItemModel).where(
            and_(PurchaseItemModel.purchase_order_id == order_id, PurchaseItemModel.item_id == item_id)
        )
    )
    if not res.rowcount:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item is not on this purchase order")

    await _refresh_total(db, order)
    await _commit(db, "update", order_id)
    return await _serialize(db, order)


@router.post("/{order_id}/order", response_model=Dict)
async def place_purchase_order(
    order_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    order = await authorize_purchase_order(db, user, order_id)
    _ensure_status(order, DRAFT)

    if not await _load_lines(db, order_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Purchase order has no items")

    order.status = ORDERED
    await _commit(db, "place", order_id)
    return await _serialize(db, order)


@router.post("/{order_id}/receive", response_model=Dict)
async def receive_purchase_order(
    order_id: str,
    payload: Optional[PurchaseReceive] = None,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Book the delivery into stock and mark the order received, in one transaction."""
    order = await authorize_purchase_order(db, user, order_id)
    _ensure_status(order, ORDERED)

    res = await db.execute(
        select(PurchaseItemModel)
        .options(selectinload(PurchaseItemModel.item))
        .where(PurchaseItemModel.purchase_order_id == order_id)
    )
    lines = res.scalars().all()

    counted = {line.item_id: line.received_quantity for line in (payload.items if payload else [])}
    unknown = set(counted) - {line.item_id for line in lines}
    if unknown:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item is not on this purchase order")

    now = datetime.now(timezone.utc)
    for line in lines:
        received = counted.get(line.item_id, float(line.quantity))
        line.received_quantity = received
        item: ItemModel = line.item
        item.quantity = float(item.quantity) + received
        if received > 0:
            item.last_cost_price = line.cost_price
        item.updated_at = now
    order.status = RECEIVED
    order.received_at = now
    await _commit(db, "receive", order_id)

    logger.info("Purchase order %s received by %s (%d lines)", order_id, user.uid, len(lines))
    return await _serialize(db, order)


@router.delete("/{order_id}", response_model=Dict)
async def delete_purchase_order(
    order_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Drafts and placed orders can be dropped. Received ones are already in stock."""
    order = await authorize_purchase_order(db, user, order_id)
    if order.status == RECEIVED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Received purchase orders cannot be deleted")

    try:
        await db.delete(order)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to delete purchase order %s", order_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete purchase order")

    return {"success": True, "id": order_id}
