from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..config import get_settings
from ..core import errors, permissions, timewindows
from ..core.constants import CLASS_DURATION, HISTORY_MAX_PAGE_SIZE
from ..core.errors import (
    ClassbookError,
    InvalidInputError,
    NotFoundError,
    PreconditionFailedError,
)
from ..db import models

logger = logging.getLogger(__name__)

_DUPLICATE_MARKERS = (
    "uq_reservation_user_class",
    "reservations.user_id, reservations.class_id",
)


@dataclass(slots=True)
class HistoryPage:
    items: list[models.Reservation]
    next_cursor: str | None


def _is_duplicate_booking(exc: IntegrityError) -> bool:
    constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint == "uq_reservation_user_class"
    message = str(exc.orig)
    return any(marker in message for marker in _DUPLICATE_MARKERS)


def class_lock_query(class_id: int) -> Select:
    return (
        select(models.ClassSession)
        .where(models.ClassSession.id == class_id)
        .with_for_update()
    )


def user_lock_query(user_id: int) -> Select:
    return select(models.User).where(models.User.id == user_id).with_for_update()


def _lock_class(db: Session, class_id: int) -> models.ClassSession | None:
    return db.execute(class_lock_query(class_id)).scalar_one_or_none()


def _lock_user(db: Session, user_id: int) -> models.User | None:
    return db.execute(user_lock_query(user_id)).scalar_one_or_none()


def _count_for_class(db: Session, class_id: int) -> int:
    return db.scalar(
        select(func.count(models.Reservation.id)).where(
            models.Reservation.class_id == class_id
        )
    ) or 0


def _active_booked(db: Session, user_id: int, now: datetime) -> list[models.Reservation]:
    # Classes may run past midnight, so yesterday's rows are still candidates
    earliest = (now - CLASS_DURATION).date()
    candidates = (
        db.execute(
            select(models.Reservation).where(
                models.Reservation.user_id == user_id,
                models.Reservation.status == models.ReservationStatus.booked,
                or_(
                    models.Reservation.class_date.is_(None),
                    models.Reservation.class_time.is_(None),
                    models.Reservation.class_date >= earliest,
                ),
            )
        )
        .scalars()
        .all()
    )
    return [
        reservation
        for reservation in candidates
        if timewindows.is_active_booking(reservation.class_date, reservation.class_time, now)
    ]


def _check_booking_window(cls: models.ClassSession, now: datetime) -> None:
    state = timewindows.booking_window_state(cls.date, cls.time, now)
    if state == timewindows.BookingWindowState.pending:
        opens_at = timewindows.booking_opens_at(cls.date, cls.time)
        raise PreconditionFailedError(
            errors.BOOKING_NOT_OPEN,
            f"Booking opens at {opens_at:%Y-%m-%d %H:%M}",
        )
    if state == timewindows.BookingWindowState.closed:
        raise PreconditionFailedError(errors.BOOKING_CLOSED, "Booking is closed for this class")


def create_reservation(
    db: Session,
    actor: models.User,
    class_id: int,
    user_id: int | None = None,
    *,
    now: datetime | None = None,
) -> models.Reservation:
    """Book ``class_id`` for ``user_id`` (defaults to the actor).

    The class row and the user row are locked for the rest of the
    transaction, so concurrent bookings for the same class, or by the same
    member, are serialized on databases that honor ``FOR UPDATE``.
    """
    if user_id is None:
        user_id = actor.id
    permissions.ensure_self_or_admin(actor, user_id)
    now = now or timewindows.local_now()
    settings = get_settings()
    try:
        cls = _lock_class(db, class_id)
        if cls is None:
            raise NotFoundError("Class not found")
        if _lock_user(db, user_id) is None:
            raise NotFoundError("User not found")
        if settings.booking_window_enforced:
            _check_booking_window(cls, now)
        existing = get_reservation_for_user_and_class(db, class_id, user_id)
        if existing is not None:
            raise PreconditionFailedError(errors.ALREADY_BOOKED, "Already booked")
        if _active_booked(db, user_id, now):
            raise PreconditionFailedError(
                errors.ACTIVE_BOOKING_EXISTS, "User already has an active booking"
            )
        if _count_for_class(db, class_id) >= cls.capacity:
            raise PreconditionFailedError(errors.CLASS_FULL, "No free seats")
        reservation = models.Reservation(
            user_id=user_id,
            class_id=class_id,
            status=models.ReservationStatus.booked,
            class_date=cls.date,
            class_time=cls.time,
        )
        db.add(reservation)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_duplicate_booking(exc):
            raise PreconditionFailedError(errors.ALREADY_BOOKED, "Already booked") from exc
        raise
    except ClassbookError:
        db.rollback()
        raise
    db.refresh(reservation)
    logger.info(
        "Reservation created",
        extra={"reservation_id": reservation.id, "class_id": class_id, "user_id": user_id},
    )
    return reservation


def cancel_reservation(db: Session, actor: models.User, reservation_id: int) -> bool:
    """Delete a reservation in any status. A missing id is a no-op."""
    reservation = db.get(models.Reservation, reservation_id)
    if reservation is None:
        logger.info("Reservation already gone", extra={"reservation_id": reservation_id})
        return False
    permissions.ensure_self_or_admin(actor, reservation.user_id)
    db.delete(reservation)
    db.commit()
    logger.info(
        "Reservation canceled",
        extra={"reservation_id": reservation_id, "actor_id": actor.id},
    )
    return True


def count_reservations(db: Session, class_id: int) -> int:
    return _count_for_class(db, class_id)


def count_active_reservations(
    db: Session,
    actor: models.User,
    user_id: int,
    *,
    now: datetime | None = None,
) -> int:
    permissions.ensure_self_or_admin(actor, user_id)
    now = now or timewindows.local_now()
    return len(_active_booked(db, user_id, now))


def get_reservation_for_user_and_class(
    db: Session, class_id: int, user_id: int
) -> models.Reservation | None:
    return db.execute(
        select(models.Reservation).where(
            models.Reservation.class_id == class_id,
            models.Reservation.user_id == user_id,
        )
    ).scalar_one_or_none()


def encode_cursor(reservation: models.Reservation) -> str:
    raw = json.dumps({"d": reservation.class_date.isoformat(), "id": reservation.id})
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[date, int]:
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return date.fromisoformat(data["d"]), int(data["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
        raise InvalidInputError("Invalid cursor") from exc


def list_past_reservations(
    db: Session,
    actor: models.User,
    user_id: int,
    page_size: int = 10,
    cursor: str | None = None,
    *,
    now: datetime | None = None,
) -> HistoryPage:
    """Page through reservations dated today or earlier, newest first.

    Same-day classes that have not ended yet are included; each item carries
    ``class_over`` so the caller can drop them.
    """
    permissions.ensure_self_or_admin(actor, user_id)
    if not 1 <= page_size <= HISTORY_MAX_PAGE_SIZE:
        raise InvalidInputError(f"page_size must be between 1 and {HISTORY_MAX_PAGE_SIZE}")
    now = now or timewindows.local_now()
    stmt = (
        select(models.Reservation)
        .options(selectinload(models.Reservation.class_session))
        .where(
            models.Reservation.user_id == user_id,
            models.Reservation.class_date <= now.date(),
        )
    )
    if cursor:
        cursor_date, cursor_id = decode_cursor(cursor)
        stmt = stmt.where(
            or_(
                models.Reservation.class_date < cursor_date,
                and_(
                    models.Reservation.class_date == cursor_date,
                    models.Reservation.id < cursor_id,
                ),
            )
        )
    stmt = stmt.order_by(
        models.Reservation.class_date.desc(), models.Reservation.id.desc()
    ).limit(page_size)
    items = list(db.execute(stmt).scalars().all())
    for reservation in items:
        cls = reservation.class_session
        setattr(reservation, "class_title", cls.title if cls else None)
        setattr(reservation, "coach_name", cls.coach_name if cls else None)
        setattr(
            reservation,
            "class_over",
            timewindows.is_class_over(reservation.class_date, reservation.class_time, now),
        )
    next_cursor = encode_cursor(items[-1]) if len(items) == page_size else None
    return HistoryPage(items=items, next_cursor=next_cursor)


def annotate_check_in_window(
    reservation: models.Reservation, now: datetime | None = None
) -> models.Reservation:
    now = now or timewindows.local_now()
    is_open = (
        reservation.status == models.ReservationStatus.booked
        and reservation.class_date is not None
        and reservation.class_time is not None
        and timewindows.is_check_in_window_open(
            reservation.class_date, reservation.class_time, now
        )
    )
    setattr(reservation, "check_in_open", is_open)
    return reservation


__all__ = [
    "HistoryPage",
    "create_reservation",
    "cancel_reservation",
    "count_reservations",
    "count_active_reservations",
    "get_reservation_for_user_and_class",
    "list_past_reservations",
    "annotate_check_in_window",
    "encode_cursor",
    "decode_cursor",
]
