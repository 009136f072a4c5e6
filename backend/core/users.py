from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import CurrentUser
from core.logging import get_logger
from db.database import insert_for
from db.models import User

logger = get_logger(__name__)


async def ensure_user(db: AsyncSession, user: CurrentUser, display_name: str = "") -> bool:
    """
    Create the stub user row for a verified identity if it is missing.

    Single INSERT .. ON CONFLICT (id) DO NOTHING, so concurrent first requests
    cannot race. Only a conflict on the uid counts as "already exists": an
    email held by a different uid rolls the session back and raises 409.
    Returns True if a row was inserted. Does not commit.
    """
    tbl = User.__table__
    stmt = (
        insert_for(db, tbl)
        .values(id=user.uid, email=user.email, display_name=display_name)
        .on_conflict_do_nothing(index_elements=[tbl.c.id])
    )
    try:
        res = await db.execute(stmt)
    except IntegrityError:
        await db.rollback()
        logger.warning("Email of %s is already registered to another user", user.uid)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered to another account")
    return bool(res.rowcount)
