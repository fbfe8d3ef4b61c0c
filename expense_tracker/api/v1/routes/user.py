import logging
from fastapi import APIRouter, Depends, HTTPException, Response, Cookie
from sqlalchemy.ext.asyncio import AsyncSession
from expense_tracker.db.session import get_db
from expense_tracker.schemas.user import UserCreate, UserOut, UserLogin, UserUpdate
from expense_tracker.models.user import User
from expense_tracker.services.user_service import create_user, get_user_by_id, get_all_users, edit_user, search_users, get_user_profile
from expense_tracker.core.config import settings
from expense_tracker.core.dependencies import authenticate_user, get_current_user
from expense_tracker.core.jwt_config import create_access_token, create_refresh_token, decode_token

logger = logging.getLogger(__name__)

router = APIRouter()

def _set_auth_cookies(response: Response, access: str, refresh: str):
    for key, value in (("access_token", access), ("refresh_token", refresh)):
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE
        )

@router.get("/", response_model=list[UserOut])
async def get_all(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_all_users(db)

@router.post("/register", response_model=UserOut)
async def register_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await create_user(db, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/login", response_model=UserOut)
async def login_user(data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, data.email, data.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    access = create_access_token({"sub": str(user.id)})
    refresh = create_refresh_token({"sub": str(user.id)})

    user.refresh_token = refresh
    await db.commit()
    await db.refresh(user)

    _set_auth_cookies(response, access, refresh)
    logger.info("User %s logged in", user.id)
    return user

@router.get("/me", response_model=UserOut)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)

@router.patch("/me", response_model=UserOut)
async def edit_me(data: UserUpdate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await edit_user(db, data, user_id=current_user.id)

@router.post("/refresh", response_model=UserOut)
async def refresh_token(
    response: Response,
    db: AsyncSession = Depends(get_db),
    refresh_cookie: str | None = Cookie(None, alias="refresh_token")
):
    if refresh_cookie is None:
        raise HTTPException(status_code=401, detail="Refresh token missing")

    payload = decode_token(refresh_cookie)
    user_id = payload.get("sub")

    if payload.get("type") != "refresh" or user_id is None:
        raise HTTPException(401, "Invalid refresh token")

    try:
        user = await get_user_by_id(db, int(user_id))
    except ValueError:
        raise HTTPException(401, "Invalid refresh token")

    if not user:
        raise HTTPException(401, "User not found")

    if user.refresh_token != refresh_cookie:
        raise HTTPException(401, "Refresh token revoked or rotated")

    new_access = create_access_token({"sub": str(user.id)})
    new_refresh = create_refresh_token({"sub": str(user.id)})

    user.refresh_token = new_refresh
    await db.commit()
    await db.refresh(user)

    _set_auth_cookies(response, new_access, new_refresh)
    return user

@router.post("/logout")
async def logout_user(response: Response, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    current_user.refresh_token = None
    await db.commit()

    response.delete_cookie("refresh_token")
    response.delete_cookie("access_token")
    return {"message": "Logged out"}

@router.get("/search", response_model=list[UserOut])
async def search(email: str, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await search_users(db, email)

@router.get("/{user_id}", response_model=UserOut)
async def profile(user_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_user_profile(db, user_id)
