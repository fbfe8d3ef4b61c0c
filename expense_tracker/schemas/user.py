from datetime import datetime
from pydantic import BaseModel, EmailStr

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    display_name: str | None = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserUpdate(BaseModel):
    display_name: str | None = None

class UserOut(BaseModel):
    id: int
    email: str
    display_name: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
