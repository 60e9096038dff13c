from .user import User, UserRole
from .class_session import ClassSession, WorkoutSegment
from .reservation import Reservation, ReservationStatus
from .personal_record import PersonalRecord, PRUnit
from .box import Box
from .audit_log import AuditLog, ActorType
