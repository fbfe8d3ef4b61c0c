from datetime import datetime
from typing import List, Literal
from pydantic import BaseModel

SplitType = Literal["equal", "custom"]

class SplitOut(BaseModel):
    user_id: int
    amount: float
    shares: int | None = None

    class Config:
        from_attributes = True

class ExpenseCreate(BaseModel):
    description: str = ""
    amount: float
    split_type: SplitType = "equal"
    participants: List[int] = []
    # user id -> share count, only read for custom splits
    shares: dict[int, int] | None = None
    # on edit, leaving this out keeps the current group
    group_id: int | None = None

class SplitPreviewRequest(BaseModel):
    amount: float
    split_type: SplitType = "equal"
    participants: List[int] = []
    shares: dict[int, int] | None = None

class ExpenseOut(BaseModel):
    id: int
    group_id: int | None = None
    paid_by: int
    payer_name: str | None = None
    amount: float
    description: str
    split_type: str = "equal"
    splits: List[SplitOut]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
