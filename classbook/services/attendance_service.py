from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core import errors, permissions, timewindows
from ..core.constants import ADMIN_CHECK_IN_ACTION, NO_SHOW_SWEEP_ACTION
from ..core.errors import NotFoundError, PermissionDeniedError, PreconditionFailedError
from ..db import models

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SweepResult:
    transitioned: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    batch_full: bool = False


def _get_reservation(db: Session, reservation_id: int) -> models.Reservation:
    reservation = db.get(models.Reservation, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


def check_in(
    db: Session,
    actor: models.User,
    reservation_id: int,
    *,
    now: datetime | None = None,
) -> models.Reservation:
    """Self check-in, allowed until 15 minutes after class start."""
    reservation = _get_reservation(db, reservation_id)
    if actor is None or actor.id != reservation.user_id:
        raise PermissionDeniedError("Only the reservation owner can check in")
    if reservation.status == models.ReservationStatus.checked_in:
        raise PreconditionFailedError(errors.INVALID_STATUS, "Reservation is already checked in")
    cls = reservation.class_session
    if cls is None:
        raise NotFoundError("Class not found")
    now = now or timewindows.local_now()
    # Deadline first: late rows may already be NO_SHOW
    deadline = timewindows.check_in_deadline(cls.date, cls.time)
    if now > deadline:
        raise PreconditionFailedError(
            errors.CHECK_IN_WINDOW_EXPIRED,
            f"Check-in closed at {deadline:%H:%M}",
        )
    if reservation.status != models.ReservationStatus.booked:
        raise PreconditionFailedError(
            errors.INVALID_STATUS,
            f"Reservation is {reservation.status.value}, expected BOOKED",
        )
    result = db.execute(
        update(models.Reservation)
        .where(
            models.Reservation.id == reservation_id,
            models.Reservation.status == models.ReservationStatus.booked,
        )
        .values(status=models.ReservationStatus.checked_in, checked_in_at=now)
    )
    if not result.rowcount:
        db.rollback()
        raise PreconditionFailedError(errors.INVALID_STATUS, "Reservation is no longer BOOKED")
    db.commit()
    db.refresh(reservation)
    logger.info("Checked in", extra={"reservation_id": reservation_id, "user_id": actor.id})
    return reservation


def admin_check_in(
    db: Session,
    actor: models.User,
    reservation_id: int,
    *,
    now: datetime | None = None,
) -> models.Reservation:
    """Manual override: no time window and no status precondition."""
    permissions.ensure_admin(actor)
    reservation = _get_reservation(db, reservation_id)
    now = now or timewindows.local_now()
    previous_status = reservation.status
    if previous_status != models.ReservationStatus.checked_in or reservation.checked_in_at is None:
        reservation.checked_in_at = now
    reservation.status = models.ReservationStatus.checked_in
    reservation.no_show_at = None
    db.add(
        models.AuditLog(
            actor_type=models.ActorType.admin,
            actor_id=actor.id,
            action=ADMIN_CHECK_IN_ACTION,
            payload={
                "reservation_id": reservation.id,
                "user_id": reservation.user_id,
                "class_id": reservation.class_id,
                "previous_status": previous_status.value,
            },
        )
    )
    db.commit()
    db.refresh(reservation)
    logger.info(
        "Admin check-in",
        extra={"reservation_id": reservation_id, "actor_id": actor.id},
    )
    return reservation


def _apply_no_show(db: Session, reservation_ids: list[int], now: datetime) -> list[int]:
    """Return the ids this statement moved; rows another sweep got first are absent."""
    changed = db.execute(
        update(models.Reservation)
        .where(
            models.Reservation.id.in_(reservation_ids),
            models.Reservation.status == models.ReservationStatus.booked,
        )
        .values(status=models.ReservationStatus.no_show, no_show_at=now)
        .returning(models.Reservation.id)
        .execution_options(synchronize_session=False)
    )
    return sorted(changed.scalars().all())


def _expired_candidates(
    db: Session, now: datetime, batch_size: int, result: SweepResult
) -> list[int]:
    candidates = (
        db.execute(
            select(models.Reservation)
            .where(
                models.Reservation.status == models.ReservationStatus.booked,
                models.Reservation.class_date <= now.date(),
                models.Reservation.class_time.is_not(None),
            )
            .order_by(
                models.Reservation.class_date,
                models.Reservation.class_time,
                models.Reservation.id,
            )
            .limit(batch_size)
        )
        .scalars()
        .all()
    )
    result.batch_full = len(candidates) >= batch_size
    expired: list[int] = []
    for reservation in candidates:
        try:
            deadline = timewindows.check_in_deadline(reservation.class_date, reservation.class_time)
        except (TypeError, AttributeError, ValueError):
            logger.warning(
                "Skipping reservation with malformed schedule",
                extra={"reservation_id": reservation.id},
            )
            result.skipped.append(reservation.id)
            continue
        if now > deadline:
            expired.append(reservation.id)
    return expired


def sweep_no_shows(
    db: Session,
    *,
    now: datetime | None = None,
    batch_size: int | None = None,
) -> SweepResult:
    """Mark BOOKED reservations past their check-in deadline as NO_SHOW.

    Only rows dated today or earlier are scanned, at most ``batch_size`` per
    run; anything beyond that waits for the next run. The transition is a
    conditional update, so re-running a sweep (or running two at once) leaves
    already-marked rows alone.
    """
    now = now or timewindows.local_now()
    batch_size = batch_size or get_settings().no_show_sweep_batch_size
    result = SweepResult()
    expired = _expired_candidates(db, now, batch_size, result)
    if not expired:
        db.rollback()
        return result

    try:
        changed = _apply_no_show(db, expired, now)
        db.commit()
        result.transitioned.extend(changed)
        if len(changed) != len(expired):
            logger.info(
                "Some reservations were already transitioned",
                extra={"expected": len(expired), "changed": len(changed)},
            )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Batch no-show update failed; retrying one by one")
        for reservation_id in expired:
            try:
                changed = _apply_no_show(db, [reservation_id], now)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                logger.exception(
                    "Failed to mark reservation as no-show",
                    extra={"reservation_id": reservation_id},
                )
                result.failed.append(reservation_id)
            else:
                result.transitioned.extend(changed)

    if result.transitioned:
        db.add(
            models.AuditLog(
                actor_type=models.ActorType.system,
                action=NO_SHOW_SWEEP_ACTION,
                payload={
                    "reservation_ids": result.transitioned,
                    "failed": result.failed,
                    "skipped": result.skipped,
                    "swept_at": now.isoformat(),
                },
            )
        )
        db.commit()
    db.expire_all()
    logger.info(
        "No-show sweep finished",
        extra={
            "transitioned": len(result.transitioned),
            "failed": len(result.failed),
            "skipped": len(result.skipped),
            "batch_full": result.batch_full,
        },
    )
    return result


__all__ = ["SweepResult", "check_in", "admin_check_in", "sweep_no_shows"]
