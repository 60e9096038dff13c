from .class_session import ClassSession, ClassSessionCreate, ClassSessionUpdate, WorkoutSegment
from .reservation import (
    ClassAttendee,
    HistoryItem,
    Reservation,
    ReservationCount,
    ReservationCreate,
    ReservationPage,
)
from .user import User, UserCreate, UserUpdate
from .personal_record import PersonalRecord, PersonalRecordCreate, PersonalRecordUpdate
from .box import Box, BoxUpdate
