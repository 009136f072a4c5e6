from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.tenancy import (
    authorize_item,
    authorize_section,
    get_section_in_organization,
    require_membership,
)
from db.database import get_async_session
from db.models import Category as CategoryModel, Item as ItemModel, Supplier as SupplierModel
from schemas.inventory import ItemCreate, ItemUpdate

logger = get_logger(__name__)

router = APIRouter()


async def _check_links(
    db: AsyncSession, section_id: str, category_id: Optional[str], supplier_id: Optional[str]
) -> None:
    """Category and supplier of an item must belong to the item's own section."""
    for model, ref_id, detail in (
        (CategoryModel, category_id, "Invalid category for section"),
        (SupplierModel, supplier_id, "Invalid supplier for section"),
    ):
        if ref_id is None:
            continue
        res = await db.execute(
            select(model.id).where(and_(model.id == ref_id, model.section_id == section_id))
        )
        if res.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.get("", response_model=Dict)
async def list_items(
    section_id: Optional[str] = Query(None, alias="sectionId"),
    low_stock: bool = Query(False, alias="lowStock"),
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sectionId is required")

    # 1. section exists  2. caller is a member of its organization
    await authorize_section(db, user, section_id)

    stmt = select(ItemModel).where(ItemModel.section_id == section_id)
    if low_stock:
        stmt = stmt.where(ItemModel.quantity < ItemModel.min_stock_level)
    res = await db.execute(stmt.order_by(ItemModel.name, ItemModel.vintage))
    return {"items": [it.to_schema for it in res.scalars().all()]}


@router.get("/{item_id}", response_model=Dict)
async def get_item(
    item_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    item = await authorize_item(db, user, item_id)
    return item.to_schema


@router.post("", response_model=Dict)
async def create_item(
    payload: ItemCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not payload.name or not payload.organization_id or not payload.section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    # The pairing check runs before membership: a mismatched org/section is bad input, not a 403
    await get_section_in_organization(db, payload.section_id, payload.organization_id)
    await require_membership(db, user, payload.organization_id)
    await _check_links(db, payload.section_id, payload.category_id, payload.supplier_id)

    model = ItemModel(
        organization_id=payload.organization_id,
        section_id=payload.section_id,
        category_id=payload.category_id,
        supplier_id=payload.supplier_id,
        name=payload.name,
        sub_name=payload.sub_name,
        vintage=payload.vintage,
        quantity=payload.quantity if payload.quantity is not None else 0,
        unit=payload.unit or "pc",
        last_cost_price=payload.last_cost_price or 0,
        min_stock_level=payload.min_stock_level or 0,
        updated_at=datetime.now(timezone.utc),
    )
    try:
        db.add(model)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to create item in section %s", payload.section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create item")

    return model.to_schema


@router.put("/{item_id}", response_model=Dict)
async def update_item(
    item_id: str,
    payload: ItemUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    # Organization comes from the stored item, whatever the body says
    model = await authorize_item(db, user, item_id)

    # Explicit nulls for required fields were already rejected by ItemUpdate
    data = payload.model_dump(exclude_unset=True)
    await _check_links(db, model.section_id, data.get("category_id"), data.get("supplier_id"))
    for field, value in data.items():
        setattr(model, field, value)
    model.updated_at = datetime.now(timezone.utc)

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to update item %s", item_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update item")

    return {"success": True, "id": item_id}


@router.delete("/{item_id}", response_model=Dict)
async def delete_item(
    item_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    model = await authorize_item(db, user, item_id)

    try:
        await db.delete(model)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to delete item %s", item_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete item")

    return {"success": True, "id": item_id}
