from pydantic import BaseModel

class UserBalance(BaseModel):
    user_id: int
    email: str
    display_name: str | None = None
    # positive: they owe the viewer, negative: the viewer owes them
    balance: float
