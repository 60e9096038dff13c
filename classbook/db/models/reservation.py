from datetime import date, datetime, time
from enum import Enum as PyEnum
from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, Integer, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class ReservationStatus(str, PyEnum):
    booked = "BOOKED"
    checked_in = "CHECKED_IN"
    no_show = "NO_SHOW"


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        UniqueConstraint("user_id", "class_id", name="uq_reservation_user_class"),
        Index("ix_reservation_status_class_date", "status", "class_date"),
        Index("ix_reservation_user_class_date", "user_id", "class_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="CASCADE"), index=True)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus), default=ReservationStatus.booked
    )
    # Copy of the class schedule; kept in sync by catalog_service.update_class
    class_date: Mapped[date | None] = mapped_column(Date)
    class_time: Mapped[time | None] = mapped_column(Time)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # Gym wall-clock stamps
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime)
    no_show_at: Mapped[datetime | None] = mapped_column(DateTime)

    user = relationship("User")
    class_session = relationship("ClassSession", back_populates="reservations")
