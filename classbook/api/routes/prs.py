from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.errors import ClassbookError
from ...db.session import get_db
from ...db import models, schemas
from ...services import pr_service

router = APIRouter(prefix="/prs", tags=["personal-records"])


@router.patch("/{record_id}", response_model=schemas.PersonalRecord)
def update_pr(
    record_id: int,
    payload: schemas.PersonalRecordUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return pr_service.update_pr(db, user, record_id, payload)
    except ClassbookError as exc:
        deps.http_error(exc)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pr(
    record_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        pr_service.delete_pr(db, user, record_id)
    except ClassbookError as exc:
        deps.http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
