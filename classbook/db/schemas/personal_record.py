import datetime as dt

from pydantic import BaseModel, Field

from ..models.personal_record import PRUnit


class PersonalRecordCreate(BaseModel):
    movement: str = Field(min_length=1)
    value: str = Field(min_length=1)
    unit: PRUnit = PRUnit.kg


class PersonalRecordUpdate(BaseModel):
    value: str = Field(min_length=1)
    unit: PRUnit


class PersonalRecord(PersonalRecordCreate):
    id: int
    user_id: int
    created_at: dt.datetime | None = None

    class Config:
        from_attributes = True
