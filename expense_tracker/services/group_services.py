import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException
from expense_tracker.models.group import Group
from expense_tracker.models.group_member import GroupMember
from expense_tracker.models.group_invitation import (
    GroupInvitation,
    INVITATION_ACCEPTED,
    INVITATION_PENDING,
)
from expense_tracker.models.expense import Expense
from expense_tracker.models.user import User
from expense_tracker.core.config import settings
from expense_tracker.core.dependencies import check_group_membership
from expense_tracker.schemas.group import GroupDetailOut, GroupSummaryOut, InvitationOut
from expense_tracker.services.user_service import display_label, get_profiles, get_user_by_email

logger = logging.getLogger(__name__)

async def create_group(db: AsyncSession, name: str, creator_id: int):
    name = (name or "").strip()
    if not name:
        raise HTTPException(400, "Please enter a group name")

    group = Group(name=name, created_by=creator_id)
    db.add(group)
    await db.flush()

    member = GroupMember(group_id=group.id, user_id=creator_id)
    db.add(member)

    await db.commit()
    await db.refresh(group)
    logger.info("Group %s created by %s", group.id, creator_id)
    return group

async def get_member_ids(db: AsyncSession, group_id: int) -> list[int]:
    res = await db.execute(
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
    )
    return list(res.scalars().all())

async def get_group_detail(db: AsyncSession, group_id: int, user_id: int) -> GroupDetailOut:
    group = await check_group_membership(db, group_id, user_id)
    members = await get_member_ids(db, group_id)
    return GroupDetailOut(
        id=group.id,
        name=group.name,
        created_by=group.created_by,
        created_at=group.created_at,
        members=members
    )

async def list_group_for_user(db: AsyncSession, user_id: int):
    q = (
        select(Group)
        .join(GroupMember)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.id)
    )
    result = await db.execute(q)
    return result.scalars().all()

async def list_group_summaries(db: AsyncSession, user_id: int) -> list[GroupSummaryOut]:
    groups = await list_group_for_user(db, user_id)
    if not groups:
        return []

    group_ids = [g.id for g in groups]
    since = datetime.now(timezone.utc) - timedelta(days=settings.RECENT_EXPENSE_DAYS)

    totals_res = await db.execute(
        select(Expense.group_id, func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.group_id.in_(group_ids))
        .group_by(Expense.group_id)
    )
    totals = {gid: float(total) for gid, total in totals_res.all()}

    recent_res = await db.execute(
        select(Expense.group_id, func.count(Expense.id))
        .where(Expense.group_id.in_(group_ids), Expense.created_at > since)
        .group_by(Expense.group_id)
    )
    recent = {gid: count for gid, count in recent_res.all()}

    return [
        GroupSummaryOut(
            id=g.id,
            name=g.name,
            created_by=g.created_by,
            created_at=g.created_at,
            total_amount=totals.get(g.id, 0.0),
            recent_expense_count=recent.get(g.id, 0)
        )
        for g in groups
    ]

async def list_group_members(db: AsyncSession, user_id: int, group_id: int):
    await check_group_membership(db, group_id, user_id)

    members_q = (
        select(User)
        .join(GroupMember, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
    )

    result = await db.execute(members_q)
    return result.scalars().all()

async def _get_membership(db: AsyncSession, group_id: int, user_id: int):
    res = await db.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        )
    )
    return res.scalar_one_or_none()

async def invite_member(db: AsyncSession, group_id: int, email: str, inviter_id: int):
    invitee = await get_user_by_email(db, email)
    if not invitee:
        raise HTTPException(404, "User not found")

    await check_group_membership(db, group_id, inviter_id)

    if await _get_membership(db, group_id, invitee.id):
        raise HTTPException(400, "User is already a member of this group")

    pending = await db.execute(
        select(GroupInvitation.id).where(
            GroupInvitation.group_id == group_id,
            GroupInvitation.invitee_id == invitee.id,
            GroupInvitation.status == INVITATION_PENDING
        )
    )
    if pending.first() is not None:
        raise HTTPException(400, "User has already been invited to this group")

    invitation = GroupInvitation(
        group_id=group_id,
        inviter_id=inviter_id,
        invitee_id=invitee.id,
        status=INVITATION_PENDING
    )
    db.add(invitation)
    try:
        await db.commit()
    except IntegrityError:
        # a concurrent invite won the race on the pending index
        await db.rollback()
        raise HTTPException(400, "User has already been invited to this group")

    await db.refresh(invitation)

    logger.info("User %s invited %s to group %s", inviter_id, invitee.id, group_id)
    return (await _invitation_out(db, [invitation]))[0]

async def _invitation_out(db: AsyncSession, invitations):
    group_ids = {i.group_id for i in invitations}
    groups = {}
    if group_ids:
        res = await db.execute(select(Group.id, Group.name).where(Group.id.in_(group_ids)))
        groups = {gid: name for gid, name in res.all()}
    inviters = await get_profiles(db, [i.inviter_id for i in invitations])

    return [
        InvitationOut(
            id=i.id,
            group_id=i.group_id,
            group_name=groups.get(i.group_id),
            inviter_id=i.inviter_id,
            inviter_name=display_label(inviters.get(i.inviter_id)),
            invitee_id=i.invitee_id,
            status=i.status,
            created_at=i.created_at
        )
        for i in invitations
    ]

async def list_pending_invitations(db: AsyncSession, user_id: int) -> list[InvitationOut]:
    res = await db.execute(
        select(GroupInvitation)
        .where(
            GroupInvitation.invitee_id == user_id,
            GroupInvitation.status == INVITATION_PENDING
        )
        .order_by(GroupInvitation.created_at.desc(), GroupInvitation.id.desc())
    )
    return await _invitation_out(db, list(res.scalars().all()))

async def respond_to_invitation(db: AsyncSession, invitation_id: int, status: str, user_id: int):
    invitation = await db.get(GroupInvitation, invitation_id)

    if not invitation:
        raise HTTPException(404, "Invitation not found")

    if invitation.invitee_id != user_id:
        raise HTTPException(403, "This invitation was not sent to you")

    if invitation.status != INVITATION_PENDING:
        raise HTTPException(400, "Invitation has already been answered")

    invitation.status = status

    if status == INVITATION_ACCEPTED and not await _get_membership(db, invitation.group_id, user_id):
        db.add(GroupMember(group_id=invitation.group_id, user_id=user_id))

    await db.commit()
    await db.refresh(invitation)

    logger.info("User %s %s invitation %s", user_id, status, invitation_id)
    return (await _invitation_out(db, [invitation]))[0]

async def remove_member(db: AsyncSession, group_id: int, user_id: int, owner_id: int):
    group = await db.get(Group, group_id)

    if not group:
        raise HTTPException(404, "Group not found")

    if group.created_by != owner_id:
        raise HTTPException(403, "Only the group owner can remove members")

    if user_id == group.created_by:
        raise HTTPException(400, "Cannot remove the group owner")

    member = await _get_membership(db, group_id, user_id)

    if not member:
        raise HTTPException(404, "User is not a member of this group")

    await db.delete(member)
    await db.commit()

    logger.info("User %s removed from group %s by %s", user_id, group_id, owner_id)
    return {"status": "member_removed"}
