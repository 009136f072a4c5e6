from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.users import ensure_user
from db.database import get_async_session, insert_for
from db.models import UserPreference as UserPreferenceModel
from schemas.users import UserStateUpdate

router = APIRouter()

DEFAULT_LANGUAGE = "ja"


def default_state() -> Dict:
    """Returned for users who never saved any state. Not persisted."""
    return {
        "activeOrganizationId": None,
        "activeSectionId": None,
        "language": DEFAULT_LANGUAGE,
        "lastViewState": {"view": "dashboard"},
    }


@router.get("", response_model=Dict)
async def get_state(
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(select(UserPreferenceModel).where(UserPreferenceModel.user_id == user.uid))
    preference = res.scalar_one_or_none()
    if not preference:
        return default_state()
    return preference.to_schema


@router.post("", response_model=Dict)
async def save_state(
    payload: UserStateUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    values = {
        "language": payload.language or DEFAULT_LANGUAGE,
        "active_organization_id": payload.active_organization_id,
        "active_section_id": payload.active_section_id,
        "last_view_state": payload.last_view_state,
        "updated_at": datetime.now(timezone.utc),
    }
    tbl = UserPreferenceModel.__table__
    upsert = (
        insert_for(db, tbl)
        .values(user_id=user.uid, **values)
        .on_conflict_do_update(index_elements=[tbl.c.user_id], set_=values)
    )
    await db.execute(upsert)

    # First write from this identity: make sure the user row exists too
    await ensure_user(db, user, display_name="New User")
    await db.commit()
    return {"success": True}
