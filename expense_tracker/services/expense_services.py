import logging
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from fastapi import HTTPException
from expense_tracker.models.expense import Expense
from expense_tracker.models.expense_split import ExpenseSplit
from expense_tracker.models.group_member import GroupMember
from expense_tracker.schemas.expense import ExpenseCreate, ExpenseOut, SplitOut, SplitPreviewRequest
from expense_tracker.core.dependencies import check_group_membership
from expense_tracker.core.utils import (
    CUSTOM,
    ExpenseValidationError,
    allocate_splits,
    validate_expense_input,
    validate_split_input,
)
from expense_tracker.services.user_service import display_label, get_profiles

logger = logging.getLogger(__name__)

def resolve_participants(data) -> List[int]:
    participants = list(data.participants)
    if data.split_type == CUSTOM and not participants:
        return list(data.shares or {})
    return participants

def _check_share_owners(data, participants: List[int]):
    if data.split_type != CUSTOM:
        return
    strangers = set(data.shares or {}) - set(participants)
    if strangers:
        raise HTTPException(400, "Shares given for users who are not participants")

def preview_splits(data: SplitPreviewRequest) -> List[SplitOut]:
    participants = resolve_participants(data)
    try:
        validate_split_input(data.amount, participants, data.split_type, data.shares)
    except ExpenseValidationError as e:
        raise HTTPException(400, str(e))
    return _allocate(data, participants)

def build_splits(data: ExpenseCreate) -> List[SplitOut]:
    participants = resolve_participants(data)
    try:
        validate_expense_input(data.description, data.amount, participants, data.split_type, data.shares)
    except ExpenseValidationError as e:
        raise HTTPException(400, str(e))
    return _allocate(data, participants)

def _allocate(data, participants: List[int]) -> List[SplitOut]:
    # runs after the ordered gate so its messages win
    _check_share_owners(data, participants)
    try:
        return allocate_splits(data.amount, data.split_type, participants, data.shares)
    except ExpenseValidationError as e:
        raise HTTPException(400, str(e))

async def _check_participants(db: AsyncSession, splits: List[SplitOut], group_id: int | None):
    user_ids = [s.user_id for s in splits]

    if len(user_ids) != len(set(user_ids)):
        raise HTTPException(400, "Duplicate users found in splits")

    existing = await get_profiles(db, user_ids)
    if len(existing) != len(user_ids):
        raise HTTPException(400, "Some participants do not exist")

    if group_id is None:
        return

    res = await db.execute(
        select(GroupMember.user_id).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id.in_(user_ids)
        )
    )
    if len(res.scalars().all()) != len(user_ids):
        raise HTTPException(400, "Some users in split are not group members")

async def _load_expense(db: AsyncSession, expense_id: int) -> Expense | None:
    res = await db.execute(
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(Expense.id == expense_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()

async def to_expense_out(db: AsyncSession, expenses: List[Expense]) -> List[ExpenseOut]:
    payers = await get_profiles(db, [e.paid_by for e in expenses])
    result = []
    for expense in expenses:
        out = ExpenseOut.model_validate(expense)
        out.payer_name = display_label(payers.get(expense.paid_by))
        result.append(out)
    return result

async def create_expense(db: AsyncSession, data: ExpenseCreate, paid_by: int) -> ExpenseOut:
    splits = build_splits(data)

    # membership is read live at submission time
    if data.group_id is not None:
        await check_group_membership(db, data.group_id, paid_by)

    await _check_participants(db, splits, data.group_id)

    expense = Expense(
        group_id=data.group_id,
        paid_by=paid_by,
        amount=data.amount,
        description=data.description.strip(),
        split_type=data.split_type,
    )
    db.add(expense)
    await db.flush()

    for s in splits:
        db.add(ExpenseSplit(
            expense_id=expense.id,
            user_id=s.user_id,
            amount=s.amount,
            shares=s.shares
        ))

    await db.commit()
    logger.info(
        "Expense %s created by %s (group=%s, %d splits)",
        expense.id, paid_by, data.group_id, len(splits)
    )

    created = await _load_expense(db, expense.id)
    return (await to_expense_out(db, [created]))[0]

async def edit_expense(db: AsyncSession, data: ExpenseCreate, expense_id: int, user_id: int) -> ExpenseOut:
    expense = await _load_expense(db, expense_id)

    if not expense:
        raise HTTPException(404, "Expense not found")

    if expense.paid_by != user_id:
        raise HTTPException(403, "You can't edit this expense")

    # an omitted group_id keeps the expense where it is
    if "group_id" in data.model_fields_set and data.group_id != expense.group_id:
        raise HTTPException(400, "An expense cannot be moved between groups")

    splits = build_splits(data)

    if expense.group_id is not None:
        await check_group_membership(db, expense.group_id, user_id)

    await _check_participants(db, splits, expense.group_id)

    expense.amount = data.amount
    expense.description = data.description.strip()
    expense.split_type = data.split_type
    expense.splits = [
        ExpenseSplit(user_id=s.user_id, amount=s.amount, shares=s.shares)
        for s in splits
    ]

    await db.commit()
    logger.info("Expense %s edited by %s", expense_id, user_id)

    updated = await _load_expense(db, expense_id)
    return (await to_expense_out(db, [updated]))[0]

async def get_expenses(
    db: AsyncSession,
    user_id: int,
    group_id: int | None = None
) -> List[ExpenseOut]:
    """
    With a group id: every expense of that group, after a live membership check.
    Without: every expense whose participant set contains the user, group
    expenses included.
    """
    q = select(Expense).options(selectinload(Expense.splits))

    if group_id is not None:
        await check_group_membership(db, group_id, user_id)
        q = q.where(Expense.group_id == group_id)
    else:
        q = q.where(Expense.splits.any(ExpenseSplit.user_id == user_id))

    q = (
        q.order_by(Expense.created_at.desc(), Expense.id.desc())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    expenses = list(res.scalars().all())

    logger.debug("Fetched %d expenses for user %s (group=%s)", len(expenses), user_id, group_id)
    return await to_expense_out(db, expenses)

async def get_expense_by_id(
    db: AsyncSession,
    expense_id: int,
    user_id: int
) -> ExpenseOut:
    expense = await _load_expense(db, expense_id)

    if not expense:
        raise HTTPException(404, "Expense not found")

    involved = expense.paid_by == user_id or any(s.user_id == user_id for s in expense.splits)

    if not involved:
        if expense.group_id is None:
            raise HTTPException(403, "Unauthorized access")
        await check_group_membership(db, expense.group_id, user_id)

    return (await to_expense_out(db, [expense]))[0]
