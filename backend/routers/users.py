from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser, current_user
from core.logging import get_logger
from core.users import ensure_user
from db.database import get_async_session
from db.models import User as UserModel
from schemas.users import UserUpdate

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=Dict)
async def register_user(
    response: Response,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Create the caller's user row from the verified token (idempotent)."""
    created = await ensure_user(db, user)
    await db.commit()

    if not created:
        response.status_code = status.HTTP_200_OK
        return {"message": "User already exists"}
    logger.info("User %s registered", user.uid)
    response.status_code = status.HTTP_201_CREATED
    return {"message": "User created successfully"}


@router.get("/me", response_model=Dict)
async def get_me(
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(select(UserModel).where(UserModel.id == user.uid))
    model = res.scalar_one_or_none()
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return model.to_schema


@router.put("/me", response_model=Dict)
async def update_me(
    payload: UserUpdate,
    user: CurrentUser = Depends(current_user),
    db: AsyncSession = Depends(get_async_session),
):
    await ensure_user(db, user)
    await db.execute(
        update(UserModel)
        .where(UserModel.id == user.uid)
        .values(display_name=payload.display_name, updated_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return {"success": True}
