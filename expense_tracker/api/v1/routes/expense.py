from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from expense_tracker.db.session import get_db
from expense_tracker.schemas.expense import ExpenseCreate, ExpenseOut, SplitOut, SplitPreviewRequest
from expense_tracker.services.expense_services import create_expense, edit_expense, get_expenses, get_expense_by_id, preview_splits
from expense_tracker.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=ExpenseOut)
async def add_expense(data: ExpenseCreate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await create_expense(db, data, current_user.id)

@router.post("/split-preview", response_model=list[SplitOut])
async def split_preview(data: SplitPreviewRequest, current_user = Depends(get_current_user)):
    return preview_splits(data)

@router.get("/my-expenses/all", response_model=list[ExpenseOut])
async def my_expenses(
    group_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_expenses(db, user_id=current_user.id, group_id=group_id)

@router.patch("/{expense_id}", response_model=ExpenseOut)
async def edit(data: ExpenseCreate, expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await edit_expense(db, data, expense_id=expense_id, user_id=current_user.id)

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_expense_by_id(
        db,
        expense_id=expense_id,
        user_id=current_user.id
    )
