"""
Stocktaking (periodic counts of a section's stock).

A session is opened for one section, staff record the counted quantity per
item, and closing the session overwrites each counted item's theoretical
quantity with the counted one. Tenancy rules are the same as for items:
sessions are resolved first and authorized against their stored
organization.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.tenancy import (
    authorize_section,
    authorize_stocktake,
    get_item_or_404,
    get_section_in_organization,
    require_membership,
)
from db.database import get_async_session, insert_for
from db.models import (
    Item as ItemModel,
    StocktakeRecord as StocktakeRecordModel,
    StocktakeSession as StocktakeSessionModel,
)
from schemas.inventory import StocktakeCount, StocktakeCreate

logger = get_logger(__name__)

router = APIRouter()


def _ensure_open(session: StocktakeSessionModel) -> None:
    if session.status != "open":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Stocktake is already closed")


async def _load_records(db: AsyncSession, session_id: str) -> list[StocktakeRecordModel]:
    res = await db.execute(
        select(StocktakeRecordModel)
        .where(StocktakeRecordModel.session_id == session_id)
        .order_by(StocktakeRecordModel.updated_at)
    )
    return list(res.scalars().all())


@router.get("", response_model=Dict)
async def list_stocktakes(
    section_id: Optional[str] = Query(None, alias="sectionId"),
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sectionId is required")

    await authorize_section(db, user, section_id)

    res = await db.execute(
        select(StocktakeSessionModel)
        .where(StocktakeSessionModel.section_id == section_id)
        .order_by(StocktakeSessionModel.started_at.desc())
    )
    return {"sessions": [s.to_schema for s in res.scalars().all()]}


@router.post("", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_stocktake(
    payload: StocktakeCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    name = (payload.name or "").strip()
    if not name or not payload.organization_id or not payload.section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    await get_section_in_organization(db, payload.section_id, payload.organization_id)
    await require_membership(db, user, payload.organization_id)

    session = StocktakeSessionModel(
        organization_id=payload.organization_id,
        section_id=payload.section_id,
        name=name,
        status="open",
        started_at=datetime.now(timezone.utc),
    )
    try:
        db.add(session)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to open stocktake in section %s", payload.section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create stocktake")

    return session.to_schema


@router.get("/{session_id}", response_model=Dict)
async def get_stocktake(
    session_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    session = await authorize_stocktake(db, user, session_id)
    records = await _load_records(db, session_id)
    return {**session.to_schema, "records": [r.to_schema for r in records]}


@router.put("/{session_id}/records/{item_id}", response_model=Dict)
async def record_count(
    session_id: str,
    item_id: str,
    payload: StocktakeCount,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Record (or correct) the counted quantity of one item."""
    session = await authorize_stocktake(db, user, session_id)
    _ensure_open(session)

    item = await get_item_or_404(db, item_id)
    if item.section_id != session.section_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item does not belong to stocktake section")

    now = datetime.now(timezone.utc)
    tbl = StocktakeRecordModel.__table__
    # expected_quantity is only written on the first count of the item
    upsert = (
        insert_for(db, tbl)
        .values(
            id=str(uuid.uuid4()),
            session_id=session_id,
            item_id=item_id,
            expected_quantity=float(item.quantity),
            actual_quantity=payload.actual_quantity,
            updated_at=now,
        )
        .on_conflict_do_update(
            index_elements=[tbl.c.session_id, tbl.c.item_id],
            set_={"actual_quantity": payload.actual_quantity, "updated_at": now},
        )
    )
    try:
        await db.execute(upsert)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to record count for item %s in stocktake %s", item_id, session_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to record count")

    res = await db.execute(
        select(StocktakeRecordModel)
        .where(and_(StocktakeRecordModel.session_id == session_id, StocktakeRecordModel.item_id == item_id))
        .execution_options(populate_existing=True)
    )
    return res.scalar_one().to_schema


@router.post("/{session_id}/close", response_model=Dict)
async def close_stocktake(
    session_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Apply every counted quantity to its item and close the session, in one transaction."""
    session = await authorize_stocktake(db, user, session_id)
    _ensure_open(session)

    res = await db.execute(
        select(StocktakeRecordModel)
        .options(selectinload(StocktakeRecordModel.item))
        .where(StocktakeRecordModel.session_id == session_id)
    )
    records = res.scalars().all()

    now = datetime.now(timezone.utc)
    try:
        for record in records:
            item: ItemModel = record.item
            item.quantity = record.actual_quantity
            item.updated_at = now
        session.status = "closed"
        session.closed_at = now
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to close stocktake %s", session_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to close stocktake")

    logger.info("Stocktake %s closed by %s (%d items applied)", session_id, user.uid, len(records))
    return session.to_schema


@router.delete("/{session_id}", response_model=Dict)
async def delete_stocktake(
    session_id: str,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    session = await authorize_stocktake(db, user, session_id)

    try:
        await db.delete(session)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to delete stocktake %s", session_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete stocktake")

    return {"success": True, "id": session_id}
