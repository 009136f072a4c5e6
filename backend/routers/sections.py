from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.tenancy import authorize_section_write, require_membership
from db.database import get_async_session
from db.models import Section as SectionModel
from schemas.sections import SectionCreate, SectionUpdate

logger = get_logger(__name__)

# Mounted under /api/organizations
router = APIRouter()


@router.get("/{org_id}/sections", response_model=List[Dict])
async def list_sections(
    org_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    await require_membership(db, user, org_id)

    res = await db.execute(
        select(SectionModel).where(SectionModel.organization_id == org_id).order_by(SectionModel.name)
    )
    return [s.to_schema for s in res.scalars().all()]


@router.post("/{org_id}/sections", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_section(
    org_id: str,
    payload: SectionCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    await require_membership(db, user, org_id)

    section = SectionModel(organization_id=org_id, name=name, settings=payload.settings or {})
    try:
        db.add(section)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to create section in organization %s", org_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create section")

    return {"id": section.id, "name": section.name}


@router.put("/{org_id}/sections/{section_id}", response_model=Dict)
async def update_section(
    org_id: str,
    section_id: str,
    payload: SectionUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    await authorize_section_write(db, user, org_id, section_id)

    values = {"name": name}
    if payload.settings is not None:
        values["settings"] = payload.settings

    try:
        # Scoped by organization as well, never by id alone
        await db.execute(
            update(SectionModel)
            .where(and_(SectionModel.id == section_id, SectionModel.organization_id == org_id))
            .values(**values)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to update section %s", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update section")

    return {"id": section_id, "name": name}


@router.delete("/{org_id}/sections/{section_id}", response_model=Dict)
async def delete_section(
    org_id: str,
    section_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Delete a section; its items and stocktakes go with it (ON DELETE CASCADE)."""
    await authorize_section_write(db, user, org_id, section_id)

    try:
        await db.execute(
            delete(SectionModel)
            .where(and_(SectionModel.id == section_id, SectionModel.organization_id == org_id))
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to delete section %s", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete section")

    return {"success": True}
