import datetime as dt

from pydantic import BaseModel, Field

from ..models.user import UserRole


class UserBase(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None
    birth_date: dt.date | None = None
    plan: str | None = None
    enrollment_active: bool = True


class UserCreate(UserBase):
    password: str = Field(min_length=6)
    role: str = UserRole.student.value


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    phone: str | None = None
    birth_date: dt.date | None = None
    plan: str | None = None
    enrollment_active: bool | None = None
    role: str | None = None
    password: str | None = Field(default=None, min_length=6)


class User(UserBase):
    id: int
    role: UserRole
    created_at: dt.datetime | None = None

    class Config:
        from_attributes = True
