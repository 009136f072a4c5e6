from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.users import ensure_user
from db.database import get_async_session
from db.models import Member as MemberModel, Organization as OrganizationModel
from schemas.organizations import OrganizationCreate

logger = get_logger(__name__)

router = APIRouter()


def _owner_membership(organization: OrganizationModel, user: CurrentUser) -> MemberModel:
    return MemberModel(organization_id=organization.id, user_id=user.uid, role="owner")


@router.get("", response_model=List[Dict])
async def list_organizations(
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Organizations the caller is a member of."""
    res = await db.execute(
        select(OrganizationModel, MemberModel.role)
        .join(MemberModel, MemberModel.organization_id == OrganizationModel.id)
        .where(MemberModel.user_id == user.uid)
        .order_by(OrganizationModel.created_at, OrganizationModel.name)
    )
    return [{**org.to_schema, "role": role} for org, role in res.all()]


@router.post("", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Create an organization with the caller as its owner, all or nothing."""
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    # Same transaction as the organization; nothing is committed until the owner is added
    await ensure_user(db, user)

    try:
        organization = OrganizationModel(name=name, plan="free")
        db.add(organization)
        await db.flush()  # Flush to get the ID

        db.add(_owner_membership(organization, user))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Failed to create organization for %s", user.uid)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create organization"
        )

    logger.info("Organization %s created by %s", organization.id, user.uid)
    return {"id": organization.id, "name": organization.name}
