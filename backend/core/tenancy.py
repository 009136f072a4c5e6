"""
Tenancy guard.

Every tenant-scoped endpoint funnels through here. The rule is always the
same: resolve the target resource first (404), take its organization id from
the stored row, then require a membership in that organization (403).
Organization ids sent by the client are only trusted after they have been
matched against the stored resource.
"""

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser
from core.logging import get_logger
from db.models import Category, Item, Member, PurchaseOrder, Section, StocktakeSession, Supplier

logger = get_logger(__name__)


async def authorize(db: AsyncSession, caller_id: str, organization_id: str) -> Optional[Member]:
    """Return the caller's membership in the organization, or None (deny)."""
    res = await db.execute(
        select(Member).where(
            and_(Member.organization_id == organization_id, Member.user_id == caller_id)
        )
    )
    return res.scalar_one_or_none()


async def require_membership(db: AsyncSession, user: CurrentUser, organization_id: str) -> Member:
    membership = await authorize(db, user.uid, organization_id)
    if membership is None:
        logger.info("Denied %s access to organization %s", user.uid, organization_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return membership


async def get_section_or_404(db: AsyncSession, section_id: str) -> Section:
    res = await db.execute(select(Section).where(Section.id == section_id))
    section = res.scalar_one_or_none()
    if not section:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    return section


async def get_section_in_organization(db: AsyncSession, section_id: str, organization_id: str) -> Section:
    """
    Resolve a section that the caller claims belongs to organization_id.

    A mismatch is reported as 400: the request is internally inconsistent,
    which is a different failure from "no such section".
    """
    res = await db.execute(
        select(Section).where(
            and_(Section.id == section_id, Section.organization_id == organization_id)
        )
    )
    section = res.scalar_one_or_none()
    if not section:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid section for organization")
    return section


async def get_item_or_404(db: AsyncSession, item_id: str) -> Item:
    res = await db.execute(select(Item).where(Item.id == item_id))
    item = res.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


async def get_stocktake_or_404(db: AsyncSession, session_id: str) -> StocktakeSession:
    res = await db.execute(select(StocktakeSession).where(StocktakeSession.id == session_id))
    session = res.scalar_one_or_none()
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stocktake not found")
    return session


async def authorize_section(db: AsyncSession, user: CurrentUser, section_id: str) -> Section:
    """Section by id -> its organization -> membership."""
    section = await get_section_or_404(db, section_id)
    await require_membership(db, user, section.organization_id)
    return section


async def authorize_section_write(
    db: AsyncSession, user: CurrentUser, organization_id: str, section_id: str
) -> Section:
    """
    Section named under an organization in the path.

    Looked up by (id, organization) in one query, so a missing section and one
    owned by another organization give the same 400. Membership is checked
    after that, and a non-member learns nothing about other tenants' sections.
    """
    section = await get_section_in_organization(db, section_id, organization_id)
    await require_membership(db, user, organization_id)
    return section


async def authorize_item(db: AsyncSession, user: CurrentUser, item_id: str) -> Item:
    """Item by id -> stored organization id -> membership."""
    item = await get_item_or_404(db, item_id)
    await require_membership(db, user, item.organization_id)
    return item


async def authorize_stocktake(db: AsyncSession, user: CurrentUser, session_id: str) -> StocktakeSession:
    session = await get_stocktake_or_404(db, session_id)
    await require_membership(db, user, session.organization_id)
    return session


async def _get_or_404(db: AsyncSession, model, resource_id: str, detail: str):
    res = await db.execute(select(model).where(model.id == resource_id))
    row = res.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return row


async def authorize_category(db: AsyncSession, user: CurrentUser, category_id: str) -> Category:
    category = await _get_or_404(db, Category, category_id, "Category not found")
    await require_membership(db, user, category.organization_id)
    return category


async def authorize_supplier(db: AsyncSession, user: CurrentUser, supplier_id: str) -> Supplier:
    supplier = await _get_or_404(db, Supplier, supplier_id, "Supplier not found")
    await require_membership(db, user, supplier.organization_id)
    return supplier


async def authorize_purchase_order(db: AsyncSession, user: CurrentUser, order_id: str) -> PurchaseOrder:
    order = await _get_or_404(db, PurchaseOrder, order_id, "Purchase order not found")
    await require_membership(db, user, order.organization_id)
    return order
