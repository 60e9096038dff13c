import datetime as dt

from pydantic import BaseModel, Field


class WorkoutSegmentBase(BaseModel):
    title: str = Field(min_length=1)
    details: str = ""


class WorkoutSegment(WorkoutSegmentBase):
    id: int
    position: int

    class Config:
        from_attributes = True


class ClassSessionBase(BaseModel):
    title: str = Field(min_length=1)
    coach_name: str | None = None
    date: dt.date
    time: dt.time
    capacity: int = Field(gt=0)


class ClassSessionCreate(ClassSessionBase):
    segments: list[WorkoutSegmentBase] = Field(default_factory=list)


class ClassSessionUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    coach_name: str | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    capacity: int | None = Field(default=None, gt=0)
    segments: list[WorkoutSegmentBase] | None = None


class ClassSession(ClassSessionBase):
    id: int
    created_by: int | None = None
    segments: list[WorkoutSegment] = Field(default_factory=list)
    booked_count: int = 0
    available_seats: int = 0
    booking_opens_at: dt.datetime | None = None
    booking_closes_at: dt.datetime | None = None

    class Config:
        from_attributes = True
