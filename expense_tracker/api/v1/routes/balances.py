from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from expense_tracker.db.session import get_db
from expense_tracker.core.dependencies import get_current_user
from expense_tracker.schemas.balances import UserBalance
from expense_tracker.services.balance_services import get_personal_balances, get_group_balances

router = APIRouter()

@router.get("/", response_model=list[UserBalance], description="balances from personal (non-group) expenses")
async def personal_balances(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await get_personal_balances(db, current_user.id)

@router.get("/group/{group_id}", response_model=list[UserBalance])
async def group_balances(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await get_group_balances(db, current_user.id, group_id)
