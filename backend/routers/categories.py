from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.tenancy import (
    authorize_category,
    authorize_section,
    get_section_in_organization,
    require_membership,
)
from db.database import get_async_session
from db.models import Category as CategoryModel
from schemas.purchasing import CategoryCreate, CategoryUpdate

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=Dict)
async def list_categories(
    section_id: Optional[str] = Query(None, alias="sectionId"),
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sectionId is required")

    await authorize_section(db, user, section_id)

    res = await db.execute(
        select(CategoryModel)
        .where(CategoryModel.section_id == section_id)
        .order_by(CategoryModel.display_order, CategoryModel.name)
    )
    return {"categories": [c.to_schema for c in res.scalars().all()]}


@router.post("", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    name = (payload.name or "").strip()
    if not name or not payload.organization_id or not payload.section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    await get_section_in_organization(db, payload.section_id, payload.organization_id)
    await require_membership(db, user, payload.organization_id)

    category = CategoryModel(
        organization_id=payload.organization_id,
        section_id=payload.section_id,
        name=name,
        display_order=payload.display_order,
    )
    try:
        db.add(category)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to create category in section %s", payload.section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create category")

    return category.to_schema


@router.put("/{category_id}", response_model=Dict)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    category = await authorize_category(db, user, category_id)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
        category.name = name
    if data.get("display_order") is not None:
        category.display_order = data["display_order"]

    await db.commit()
    return category.to_schema


@router.delete("/{category_id}", response_model=Dict)
async def delete_category(
    category_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Items of the category stay, with categoryId cleared (ON DELETE SET NULL)."""
    category = await authorize_category(db, user, category_id)

    try:
        await db.delete(category)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to delete category %s", category_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete category")

    return {"success": True, "id": category_id}
