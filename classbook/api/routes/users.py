from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.errors import ClassbookError
from ...db.session import get_db
from ...db import models, schemas
from ...services import member_service, pr_service, reservation_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[schemas.User])
def list_users(
    role: models.UserRole | None = None,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    return member_service.list_members(db, admin, role)


@router.post("", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        return member_service.create_member(db, admin, payload)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.get("/{user_id}", response_model=schemas.User)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return member_service.get_member(db, user, user_id)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.patch("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        return member_service.update_member(db, admin, user_id, payload)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_admin),
):
    try:
        member_service.delete_member(db, admin, user_id)
    except ClassbookError as exc:
        deps.http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/reservations/active-count", response_model=schemas.ReservationCount)
def count_active_reservations(
    user_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        count = reservation_service.count_active_reservations(db, user, user_id)
    except ClassbookError as exc:
        deps.http_error(exc)
    return schemas.ReservationCount(count=count)


@router.get("/{user_id}/reservations/history", response_model=schemas.ReservationPage)
def list_past_reservations(
    user_id: int,
    page_size: int = Query(10, ge=1, le=100),
    cursor: str | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        page = reservation_service.list_past_reservations(
            db, user, user_id, page_size=page_size, cursor=cursor
        )
    except ClassbookError as exc:
        deps.http_error(exc)
    return schemas.ReservationPage(
        items=[schemas.HistoryItem.model_validate(item) for item in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/{user_id}/prs", response_model=list[schemas.PersonalRecord])
def list_user_prs(
    user_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return pr_service.list_user_prs(db, user, user_id)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.post(
    "/{user_id}/prs",
    response_model=schemas.PersonalRecord,
    status_code=status.HTTP_201_CREATED,
)
def create_user_pr(
    user_id: int,
    payload: schemas.PersonalRecordCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return pr_service.create_pr(db, user, user_id, payload)
    except ClassbookError as exc:
        deps.http_error(exc)
