from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.tenancy import (
    authorize_section,
    authorize_supplier,
    get_section_in_organization,
    require_membership,
)
from db.database import get_async_session
from db.models import PurchaseOrder as PurchaseOrderModel, Supplier as SupplierModel
from schemas.purchasing import SupplierCreate, SupplierUpdate

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=Dict)
async def list_suppliers(
    section_id: Optional[str] = Query(None, alias="sectionId"),
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sectionId is required")

    await authorize_section(db, user, section_id)

    res = await db.execute(
        select(SupplierModel)
        .where(SupplierModel.section_id == section_id)
        .order_by(func.lower(SupplierModel.name).asc())
    )
    return {"suppliers": [s.to_schema for s in res.scalars().all()]}


@router.post("", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    payload: SupplierCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    name = (payload.name or "").strip()
    if not name or not payload.organization_id or not payload.section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    await get_section_in_organization(db, payload.section_id, payload.organization_id)
    await require_membership(db, user, payload.organization_id)

    supplier = SupplierModel(
        organization_id=payload.organization_id,
        section_id=payload.section_id,
        name=name,
        contact_info=payload.contact_info,
    )
    try:
        db.add(supplier)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to create supplier in section %s", payload.section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create supplier")

    return supplier.to_schema


@router.put("/{supplier_id}", response_model=Dict)
async def update_supplier(
    supplier_id: str,
    payload: SupplierUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    supplier = await authorize_supplier(db, user, supplier_id)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
        supplier.name = name
    if "contact_info" in data:
        supplier.contact_info = data["contact_info"]

    await db.commit()
    return supplier.to_schema


@router.delete("/{supplier_id}", response_model=Dict)
async def delete_supplier(
    supplier_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    supplier = await authorize_supplier(db, user, supplier_id)

    res = await db.execute(
        select(func.count()).select_from(PurchaseOrderModel).where(PurchaseOrderModel.supplier_id == supplier_id)
    )
    if res.scalar_one():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Supplier has purchase orders")

    try:
        await db.delete(supplier)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to delete supplier %s", supplier_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete supplier")

    return {"success": True, "id": supplier_id}
