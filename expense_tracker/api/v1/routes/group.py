from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from expense_tracker.db.session import get_db
from expense_tracker.services.group_services import (
    create_group,
    get_group_detail,
    invite_member,
    list_group_for_user,
    list_group_members,
    list_group_summaries,
    list_pending_invitations,
    remove_member,
    respond_to_invitation,
)
from expense_tracker.services.expense_services import get_expenses
from expense_tracker.schemas.group import (
    GroupCreate,
    GroupDetailOut,
    GroupOut,
    GroupSummaryOut,
    InvitationOut,
    InvitationResponse,
    InviteCreate,
)
from expense_tracker.schemas.expense import ExpenseOut
from expense_tracker.schemas.user import UserOut
from expense_tracker.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=GroupOut, description="create new group")
async def create_new_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await create_group(db, data.name, user.id)

@router.get("/my-groups", response_model=list[GroupOut], description="get user groups")
async def my_groups(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_for_user(db, user.id)

@router.get("/summaries", response_model=list[GroupSummaryOut], description="groups with spend totals")
async def group_summaries(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_summaries(db, user.id)

@router.get("/invitations", response_model=list[InvitationOut], description="pending invitations for the current user")
async def my_invitations(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_pending_invitations(db, user.id)

@router.post("/invitations/{invitation_id}/respond", response_model=InvitationOut)
async def respond(
    invitation_id: int,
    data: InvitationResponse,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await respond_to_invitation(db, invitation_id, data.status, user.id)

@router.get("/{group_id}", response_model=GroupDetailOut)
async def group_detail(group_id: int, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await get_group_detail(db, group_id, user.id)

@router.post("/{group_id}/invite", response_model=InvitationOut)
async def invite(
    group_id: int,
    data: InviteCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await invite_member(db, group_id, data.email, user.id)

@router.delete("/{group_id}/remove/{user_id}")
async def rem_mem(group_id: int, user_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await remove_member(db, group_id=group_id, user_id=user_id, owner_id=current_user.id)

@router.get("/{group_id}/group-members", response_model=list[UserOut])
async def group_members(group_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_group_members(db, current_user.id, group_id=group_id)

@router.get("/{group_id}/expenses", response_model=list[ExpenseOut], description="get all expenses of the group")
async def fetch_expenses(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await get_expenses(db, user.id, group_id)
