import logging
from typing import Dict, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from expense_tracker.models.user import User
from expense_tracker.schemas.user import UserCreate, UserUpdate
from expense_tracker.core.security import hash_password
from fastapi import HTTPException

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"

def display_label(user: User | None) -> str:
    if user is None:
        return UNKNOWN_USER
    return user.display_name or user.email

async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()

async def get_user_by_id(db: AsyncSession, id: int):
    # identity map first, database on a miss
    return await db.get(User, id)

async def get_user_profile(db: AsyncSession, user_id: int):
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user

async def get_profiles(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
    """Batch lookup; ids without a row are simply absent from the result."""
    ids = list(set(user_ids))
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}

async def get_all_users(db: AsyncSession):
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()

async def search_users(db: AsyncSession, email: str):
    prefix = email.strip().lower()
    if not prefix:
        return []
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    result = await db.execute(
        select(User)
        .where(User.email.like(f"{escaped}%", escape="\\"))
        .order_by(User.email)
    )
    return result.scalars().all()

async def create_user(db: AsyncSession, data: UserCreate):
    existing = await get_user_by_email(db, data.email)
    if existing:
        raise ValueError("User already Exists")

    if len(data.password) < 6:
        raise ValueError("Password should be at least 6 characters long")

    user = User(
        email = data.email.strip().lower(),
        display_name = (data.display_name or "").strip() or None,
        password_hash = hash_password(data.password)
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user

async def edit_user(db: AsyncSession, data: UserUpdate, user_id: int):
    user = await get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(404, "User does not exist")

    if data.display_name is not None:
        user.display_name = data.display_name.strip() or None

    await db.commit()
    await db.refresh(user)

    return user
