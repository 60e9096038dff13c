from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core import permissions, timewindows
from ..core.constants import CLASS_DELETED_ACTION
from ..core.errors import InvalidInputError, NotFoundError
from ..db import models, schemas

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("title", "date", "time", "capacity")


def _annotate(db: Session, classes: list[models.ClassSession]) -> list[models.ClassSession]:
    class_ids = [cls.id for cls in classes]
    if class_ids:
        booked_counts = dict(
            db.query(models.Reservation.class_id, func.count(models.Reservation.id))
            .filter(models.Reservation.class_id.in_(class_ids))
            .group_by(models.Reservation.class_id)
            .all()
        )
    else:
        booked_counts = {}
    for cls in classes:
        booked = int(booked_counts.get(cls.id, 0))
        setattr(cls, "booked_count", booked)
        setattr(cls, "available_seats", max(cls.capacity - booked, 0))
        setattr(cls, "booking_opens_at", timewindows.booking_opens_at(cls.date, cls.time))
        setattr(cls, "booking_closes_at", timewindows.booking_closes_at(cls.date, cls.time))
    return classes


def _build_segments(segments: list[schemas.class_session.WorkoutSegmentBase]) -> list[models.WorkoutSegment]:
    return [
        models.WorkoutSegment(position=index, title=segment.title, details=segment.details)
        for index, segment in enumerate(segments)
    ]


def list_classes_by_date(db: Session, class_date: date) -> list[models.ClassSession]:
    classes = (
        db.execute(
            select(models.ClassSession)
            .options(selectinload(models.ClassSession.segments))
            .where(models.ClassSession.date == class_date)
            .order_by(models.ClassSession.time, models.ClassSession.id)
        )
        .scalars()
        .all()
    )
    return _annotate(db, list(classes))


def get_class(db: Session, class_id: int) -> models.ClassSession:
    cls = db.get(models.ClassSession, class_id)
    if cls is None:
        raise NotFoundError("Class not found")
    return _annotate(db, [cls])[0]


def create_class(
    db: Session, actor: models.User, payload: schemas.ClassSessionCreate
) -> models.ClassSession:
    permissions.ensure_admin(actor)
    if not payload.title.strip():
        raise InvalidInputError("Title is required")
    if payload.capacity <= 0:
        raise InvalidInputError("Capacity must be positive")
    cls = models.ClassSession(
        title=payload.title.strip(),
        coach_name=payload.coach_name,
        date=payload.date,
        time=payload.time,
        capacity=payload.capacity,
        created_by=actor.id,
        segments=_build_segments(payload.segments),
    )
    db.add(cls)
    db.commit()
    db.refresh(cls)
    logger.info("Class created", extra={"class_id": cls.id, "actor_id": actor.id})
    return _annotate(db, [cls])[0]


def _sync_reservation_schedule(db: Session, cls: models.ClassSession) -> int:
    """Rewrite the schedule copy held by BOOKED reservations of ``cls``.

    Every code path that changes a class date or time must call this in the
    same transaction; the single-active-booking rule and the no-show sweeper
    read only the copy on the reservation.
    """
    result = db.execute(
        update(models.Reservation)
        .where(
            models.Reservation.class_id == cls.id,
            models.Reservation.status == models.ReservationStatus.booked,
        )
        .values(class_date=cls.date, class_time=cls.time)
    )
    return result.rowcount or 0


def update_class(
    db: Session,
    actor: models.User,
    class_id: int,
    payload: schemas.ClassSessionUpdate,
) -> models.ClassSession:
    permissions.ensure_admin(actor)
    cls = db.get(models.ClassSession, class_id)
    if cls is None:
        raise NotFoundError("Class not found")
    changes = payload.model_dump(exclude_unset=True, exclude={"segments"})
    for key in _REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            raise InvalidInputError(f"{key} cannot be empty")
    if "title" in changes:
        changes["title"] = changes["title"].strip()
        if not changes["title"]:
            raise InvalidInputError("title cannot be empty")
    for key, value in changes.items():
        setattr(cls, key, value)
    if payload.segments is not None:
        cls.segments = _build_segments(payload.segments)
    synced = 0
    if "date" in changes or "time" in changes:
        db.flush()
        synced = _sync_reservation_schedule(db, cls)
    db.commit()
    db.refresh(cls)
    logger.info(
        "Class updated",
        extra={"class_id": cls.id, "actor_id": actor.id, "synced_reservations": synced},
    )
    return _annotate(db, [cls])[0]


def delete_class(db: Session, actor: models.User, class_id: int) -> int:
    """Delete a class and every reservation pointing at it in one transaction.

    Returns the number of reservations removed.
    """
    permissions.ensure_admin(actor)
    cls = db.get(models.ClassSession, class_id)
    if cls is None:
        raise NotFoundError("Class not found")
    try:
        result = db.execute(
            delete(models.Reservation).where(models.Reservation.class_id == class_id)
        )
        removed = result.rowcount or 0
        db.delete(cls)
        db.add(
            models.AuditLog(
                actor_type=models.ActorType.admin,
                actor_id=actor.id,
                action=CLASS_DELETED_ACTION,
                payload={
                    "class_id": class_id,
                    "title": cls.title,
                    "date": cls.date.isoformat(),
                    "reservations_removed": removed,
                },
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete class", extra={"class_id": class_id})
        raise
    logger.info("Class deleted", extra={"class_id": class_id, "reservations_removed": removed})
    return removed


def list_class_reservations(
    db: Session,
    actor: models.User,
    class_id: int,
    *,
    now: datetime | None = None,
) -> list[models.Reservation]:
    permissions.ensure_admin(actor)
    cls = db.get(models.ClassSession, class_id)
    if cls is None:
        raise NotFoundError("Class not found")
    now = now or timewindows.local_now()
    reservations = (
        db.execute(
            select(models.Reservation)
            .options(selectinload(models.Reservation.user))
            .where(models.Reservation.class_id == class_id)
            .order_by(models.Reservation.created_at, models.Reservation.id)
        )
        .scalars()
        .all()
    )
    window_open = timewindows.is_check_in_window_open(cls.date, cls.time, now)
    for reservation in reservations:
        setattr(reservation, "user_name", reservation.user.name if reservation.user else None)
        setattr(
            reservation,
            "check_in_open",
            window_open and reservation.status == models.ReservationStatus.booked,
        )
    return list(reservations)
