from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ...api import deps
from ...core import timewindows
from ...db.session import get_db
from ...db import models

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("")
def dashboard_stats(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_admin),
):
    today = timewindows.local_now().date()

    members = (
        db.query(models.User)
        .filter(models.User.role == models.UserRole.student)
        .count()
    )
    classes_today = (
        db.query(models.ClassSession)
        .filter(models.ClassSession.date == today)
        .count()
    )
    reservations_today = (
        db.query(models.Reservation)
        .join(models.ClassSession)
        .filter(models.ClassSession.date == today)
        .count()
    )
    checked_in = (
        db.query(models.Reservation)
        .filter(models.Reservation.status == models.ReservationStatus.checked_in)
        .count()
    )
    no_shows = (
        db.query(models.Reservation)
        .filter(models.Reservation.status == models.ReservationStatus.no_show)
        .count()
    )
    finished = checked_in + no_shows
    attendance_rate = (checked_in / finished) * 100 if finished else 0.0

    return {
        "members": members,
        "classes_today": classes_today,
        "reservations_today": reservations_today,
        "checked_in": checked_in,
        "no_shows": no_shows,
        "attendance_rate": attendance_rate,
    }
