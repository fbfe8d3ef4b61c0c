from datetime import datetime
from typing import Literal
from pydantic import BaseModel, EmailStr

class GroupCreate(BaseModel):
    name: str

class GroupOut(BaseModel):
    id: int
    name: str
    created_by: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class GroupDetailOut(GroupOut):
    members: list[int]

class GroupSummaryOut(GroupOut):
    total_amount: float
    recent_expense_count: int

class InviteCreate(BaseModel):
    email: EmailStr

class InvitationOut(BaseModel):
    id: int
    group_id: int
    group_name: str | None = None
    inviter_id: int
    inviter_name: str | None = None
    invitee_id: int
    status: str
    created_at: datetime | None = None

class InvitationResponse(BaseModel):
    status: Literal["accepted", "declined"]
