import logging
from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from expense_tracker.db.session import get_db
from expense_tracker.core.jwt_config import decode_token, get_token_from_cookie
from expense_tracker.core.security import verify_password
from expense_tracker.models.group import Group
from expense_tracker.models.group_member import GroupMember
from expense_tracker.services.user_service import get_user_by_id, get_user_by_email

logger = logging.getLogger(__name__)

async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    token = get_token_from_cookie(request=request)
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    try:
        user = await get_user_by_id(db, int(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    return user

async def authenticate_user(db: AsyncSession, email: str, password: str):
    user = await get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        logger.info("Failed login attempt for user %s", user.id)
        return None

    return user

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int) -> Group:
    """Reads the live membership rows; raises 404/403 instead of returning None."""
    group = await db.get(Group, group_id)
    if group is None:
        raise HTTPException(404, "Group not found")

    res = await db.execute(
        select(GroupMember.id).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        )
    )
    if res.scalar_one_or_none() is None:
        raise HTTPException(403, "You are not a member of this group")

    return group
