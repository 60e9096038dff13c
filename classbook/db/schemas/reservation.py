import datetime as dt

from pydantic import BaseModel

from ..models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    class_id: int
    user_id: int | None = None


class Reservation(BaseModel):
    id: int
    user_id: int
    class_id: int
    status: ReservationStatus
    class_date: dt.date | None = None
    class_time: dt.time | None = None
    created_at: dt.datetime | None = None
    checked_in_at: dt.datetime | None = None
    no_show_at: dt.datetime | None = None
    check_in_open: bool = False

    class Config:
        from_attributes = True


class ClassAttendee(Reservation):
    user_name: str | None = None


class HistoryItem(Reservation):
    class_title: str | None = None
    coach_name: str | None = None
    class_over: bool = True


class ReservationPage(BaseModel):
    items: list[HistoryItem]
    next_cursor: str | None = None


class ReservationCount(BaseModel):
    count: int
