import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from expense_tracker.core.utils import compute_balances, counterparty_ids, filter_relevant_expenses
from expense_tracker.schemas.balances import UserBalance
from expense_tracker.services.expense_services import get_expenses
from expense_tracker.services.user_service import get_profiles

logger = logging.getLogger(__name__)

async def calculate_balances(
    db: AsyncSession,
    viewer_id: int,
    group_id: Optional[int] = None
) -> List[UserBalance]:
    expenses = await get_expenses(db, viewer_id, group_id)
    relevant = filter_relevant_expenses(expenses, group_id)

    profiles = await get_profiles(db, counterparty_ids(relevant, viewer_id))
    net = compute_balances(relevant, viewer_id, group_id)

    balances = []
    for uid, amount in net.items():
        profile = profiles.get(uid)
        if profile is None:
            logger.debug("Dropping balance for user %s: profile not found", uid)
            continue
        balances.append(UserBalance(
            user_id=uid,
            email=profile.email,
            display_name=profile.display_name,
            balance=amount
        ))

    return balances

async def get_personal_balances(db: AsyncSession, viewer_id: int):
    return await calculate_balances(db, viewer_id)

async def get_group_balances(db: AsyncSession, viewer_id: int, group_id: int):
    return await calculate_balances(db, viewer_id, group_id=group_id)
