from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.errors import ClassbookError
from ...db.session import get_db
from ...db import models, schemas
from ...services import catalog_service, reservation_service

router = APIRouter(prefix="/classes", tags=["classes"])


@router.get("", response_model=list[schemas.ClassSession])
def list_classes(
    class_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    return catalog_service.list_classes_by_date(db, class_date)


@router.get("/{class_id}", response_model=schemas.ClassSession)
def get_class(class_id: int, db: Session = Depends(get_db)):
    try:
        return catalog_service.get_class(db, class_id)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.post("", response_model=schemas.ClassSession, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: schemas.ClassSessionCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        return catalog_service.create_class(db, admin, payload)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.patch("/{class_id}", response_model=schemas.ClassSession)
def update_class(
    class_id: int,
    payload: schemas.ClassSessionUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        return catalog_service.update_class(db, admin, class_id, payload)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(
    class_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        catalog_service.delete_class(db, admin, class_id)
    except ClassbookError as exc:
        deps.http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/reservations", response_model=list[schemas.ClassAttendee])
def list_class_reservations(
    class_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        return catalog_service.list_class_reservations(db, admin, class_id)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.get("/{class_id}/reservations/count", response_model=schemas.ReservationCount)
def count_class_reservations(class_id: int, db: Session = Depends(get_db)):
    return schemas.ReservationCount(count=reservation_service.count_reservations(db, class_id))
