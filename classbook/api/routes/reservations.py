from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core import permissions
from ...core.errors import ClassbookError
from ...db.session import get_db
from ...db import models, schemas
from ...services import attendance_service, reservation_service

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", response_model=schemas.Reservation, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: schemas.ReservationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        reservation = reservation_service.create_reservation(
            db, user, payload.class_id, payload.user_id
        )
    except ClassbookError as exc:
        deps.http_error(exc)
    return reservation_service.annotate_check_in_window(reservation)


@router.get("/lookup", response_model=schemas.Reservation | None)
def get_reservation_for_user_and_class(
    class_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        permissions.ensure_self_or_admin(user, user_id)
    except ClassbookError as exc:
        deps.http_error(exc)
    reservation = reservation_service.get_reservation_for_user_and_class(db, class_id, user_id)
    if reservation is None:
        return None
    return reservation_service.annotate_check_in_window(reservation)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        reservation_service.cancel_reservation(db, user, reservation_id)
    except ClassbookError as exc:
        deps.http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{reservation_id}/check-in", response_model=schemas.Reservation)
def check_in(
    reservation_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return attendance_service.check_in(db, user, reservation_id)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.post("/{reservation_id}/admin-check-in", response_model=schemas.Reservation)
def admin_check_in(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        return attendance_service.admin_check_in(db, admin, reservation_id)
    except ClassbookError as exc:
        deps.http_error(exc)
